"""
Helpers for reading and writing JavaScript string literals.
"""
import json
import re

_SIMPLE_ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0',
}


def js_string(text):
    """Render text as a double-quoted JS string literal safe to embed anywhere.

    json.dumps with ensure_ascii escapes U+2028/U+2029, which older engines
    reject inside string literals. Escaping '</' keeps the bundle inline-able
    in an HTML <script> tag.
    """
    return json.dumps(text, ensure_ascii=True).replace("</", "<\\/")


def js_string_value(token):
    """Decode a single- or double-quoted JS string literal token into its text."""
    body = str(token)[1:-1]

    def unescape(match):
        escaped = match.group(1)
        if escaped.startswith('u{'):
            return chr(int(escaped[2:-1], 16))
        if escaped[0] in 'ux':
            return chr(int(escaped[1:], 16))
        if escaped == '\n':
            return ''  # line continuation
        return _SIMPLE_ESCAPES.get(escaped, escaped)

    return re.sub(r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[\s\S])', unescape, body)
