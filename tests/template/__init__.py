"""
Template tests.

Tests for chatplate.template module:
- test_lexer.py, test_preprocess.py: Tokens and whitespace control
- test_parser.py: Syntax trees and parse errors
- test_values.py, test_environment.py: Value model and scopes
- test_interpreter.py: Control flow, loops and assignment
- test_operators.py, test_member_access.py: Expressions, indexing, slicing
- test_filters.py, test_predicates.py: Built-in filters and tests
- test_chat_template.py: Model chat templates and presets
- test_prompt.py, test_meta.py, test_loaders.py: PromptTemplate facade
- test_concurrency.py, test_config.py
- test_jinja2_compat.py: Output parity with Jinja2 (skipped without jinja2)

Maps to: chatplate/template/
"""
