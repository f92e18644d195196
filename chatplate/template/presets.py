"""
Built-in chat template presets.

Contains template strings for common chat formats like ChatML, Llama2, etc.
Use ``PromptTemplate.from_preset(name)`` to load a preset by name. Presets
expect ``messages``, ``add_generation_prompt``, ``bos_token`` and
``eos_token``, which ``PromptTemplate.apply()`` always supplies.
"""

from __future__ import annotations

CHATML_TEMPLATE = r"""{%- for message in messages %}
    {{- '<|im_start|>' + message['role'] + '\n' + message['content'] + '<|im_end|>\n' }}
{%- endfor %}
{%- if add_generation_prompt %}
    {{- '<|im_start|>assistant\n' }}
{%- endif %}"""

LLAMA2_TEMPLATE = r"""{%- if messages and messages[0]['role'] == 'system' %}
    {%- set system_message = '<<SYS>>\n' + messages[0]['content'] + '\n<</SYS>>\n\n' %}
    {%- set loop_messages = messages[1:] %}
{%- else %}
    {%- set system_message = '' %}
    {%- set loop_messages = messages %}
{%- endif %}
{%- for message in loop_messages %}
    {%- if (message['role'] == 'user') != (loop.index0 % 2 == 0) %}
        {{- raise_exception('Conversation roles must alternate user/assistant/user/assistant/...') }}
    {%- endif %}
    {%- if message['role'] == 'user' %}
        {%- if loop.first %}
            {{- bos_token + '[INST] ' + system_message + message['content'] + ' [/INST]' }}
        {%- else %}
            {{- bos_token + '[INST] ' + message['content'] + ' [/INST]' }}
        {%- endif %}
    {%- elif message['role'] == 'assistant' %}
        {{- ' ' + message['content'] + ' ' + eos_token }}
    {%- endif %}
{%- endfor %}"""

ALPACA_TEMPLATE = r"""{%- if messages and messages[0]['role'] == 'system' %}
    {{- messages[0]['content'] + '\n\n' }}
{%- endif %}
{{- '### Instruction:\n' }}
{%- for message in messages %}
    {%- if message['role'] == 'user' %}
        {{- message['content'] + '\n' }}
    {%- endif %}
{%- endfor %}
{{- '\n### Response:\n' }}"""

VICUNA_TEMPLATE = r"""{%- for message in messages %}
    {%- if message['role'] == 'system' %}
        {{- message['content'] + '\n\n' }}
    {%- elif message['role'] == 'user' %}
        {{- 'USER: ' + message['content'] + '\n' }}
    {%- elif message['role'] == 'assistant' %}
        {{- 'ASSISTANT: ' + message['content'] + '</s>\n' }}
    {%- endif %}
{%- endfor %}
{%- if add_generation_prompt %}
    {{- 'ASSISTANT:' }}
{%- endif %}"""

ZEPHYR_TEMPLATE = r"""{%- for message in messages %}
    {{- '<|' + message['role'] + '|>\n' + message['content'] + '</s>\n' }}
{%- endfor %}
{%- if add_generation_prompt %}
    {{- '<|assistant|>\n' }}
{%- endif %}"""

PRESETS: dict[str, str] = {
    "chatml": CHATML_TEMPLATE,
    "llama2": LLAMA2_TEMPLATE,
    "alpaca": ALPACA_TEMPLATE,
    "vicuna": VICUNA_TEMPLATE,
    "zephyr": ZEPHYR_TEMPLATE,
}


def preset_names() -> list[str]:
    """Return available preset names."""
    return list(PRESETS)
