"""
Default transpiler: parses a module with the Lark grammar and rewrites its
import/export declarations into the loader contract.

Any callable with the signature `parse(source_code, file_path) -> TranspileResult`
can stand in for parse_module when building a graph.
"""
import re

from lark import Lark
from lark.exceptions import LarkError, UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from packcore.errors import ModuleSyntaxError, detect_common_error_patterns, get_line_context
from packcore.grammar import module_grammar
from packcore.transformer import ModuleTransformer, TranspileResult

__all__ = ['TranspileResult', 'get_parser', 'mask_regex_literals', 'parse_module', 'is_well_formed']

_PARSER = None


def get_parser():
    """Build the LALR parser once; the tables are the expensive part."""
    global _PARSER
    if _PARSER is None:
        _PARSER = Lark(module_grammar, parser='lalr', propagate_positions=True)
    return _PARSER


# Tokens that matter when deciding what a slash means
_SCAN = re.compile(r"""
    (?P<space>\s+)
  | (?P<comment>//[^\n]*|/\*[\s\S]*?\*/)
  | (?P<literal>"(?:[^"\\\n]|\\[\s\S])*"|'(?:[^'\\\n]|\\[\s\S])*'
      |`(?:[^`\\$]|\\[\s\S]|\$(?!\{)|\$\{(?:[^{}`]|`(?:[^`\\]|\\[\s\S])*`|\{[^{}]*\})*\})*`)
  | (?P<word>[\w$]+)
  | (?P<punct>[\s\S])
""", re.VERBOSE)

_REGEX_LITERAL = re.compile(r"/(?![*/])(?:[^/\\\[\n]|\\.|\[(?:[^\]\\\n]|\\.)*\])+/[A-Za-z]*")

# Words after which an operand, not an operator, comes next
_OPERAND_WORDS = {
    'return', 'typeof', 'case', 'do', 'else', 'in', 'of', 'new', 'delete',
    'void', 'throw', 'instanceof', 'yield', 'await',
}
_CONDITION_WORDS = {'if', 'while', 'for', 'with'}


def _starts_regex(kind, text, closes_condition):
    if kind is None:
        return True
    if kind == 'literal':
        return False
    if kind == 'word':
        return text in _OPERAND_WORDS
    if text == ')':
        return closes_condition
    return text != ']'


def mask_regex_literals(source_code):
    """
    Blank out the bodies of regex literals, keeping offsets and line breaks.

    Whether a slash opens a regex is decided by the token before it: an
    operator, an opening bracket, `}`, an operand keyword like `return`, or
    the `)` that closes an `if`/`while`/`for` head. Brackets and quotes inside
    a pattern then can't unbalance the parse.
    """
    chars = None
    kind = text = None
    closes_condition = False
    conditions = []
    position = 0
    if source_code.startswith('#!'):
        end = source_code.find('\n')
        position = len(source_code) if end < 0 else end

    while position < len(source_code):
        if source_code[position] == '/' and _starts_regex(kind, text, closes_condition):
            literal = _REGEX_LITERAL.match(source_code, position)
            if literal:
                if chars is None:
                    chars = list(source_code)
                close = position + literal.group().rindex('/')
                chars[position + 1:close] = ' ' * (close - position - 1)
                kind, text, closes_condition = 'literal', None, False
                position = literal.end()
                continue

        match = _SCAN.match(source_code, position)
        position = match.end()
        if match.lastgroup in ('space', 'comment'):
            continue
        opens_condition = kind == 'word' and text in _CONDITION_WORDS
        kind, text = match.lastgroup, match.group()
        closes_condition = False
        if text == '(':
            conditions.append(opens_condition)
        elif text == ')':
            closes_condition = conditions.pop() if conditions else False

    return source_code if chars is None else "".join(chars)


def _describe(error):
    if isinstance(error, UnexpectedCharacters):
        return f"Unexpected character {error.char!r}"
    if isinstance(error, UnexpectedToken):
        if error.token.type == '$END':
            return "Unexpected end of file"
        return f"Unexpected token {str(error.token)!r}"
    return "Syntax error"


def parse_module(source_code, file_path=None):
    """
    Parse one module and rewrite it for the bundle loader.

    Args:
        source_code: JavaScript source text
        file_path: Used only in error messages

    Returns:
        TranspileResult with the dependency specifiers in source order and the rewritten code

    Raises:
        ModuleSyntaxError: If the module can't be parsed
    """
    try:
        tree = get_parser().parse(mask_regex_literals(source_code))
    except UnexpectedInput as e:
        line_number = e.line if e.line and e.line > 0 else None
        column = e.column if e.column and e.column > 0 else None
        suggestion, _kind = detect_common_error_patterns(source_code, str(e))
        raise ModuleSyntaxError(
            _describe(e),
            file_path=file_path,
            line_number=line_number,
            column=column,
            context=get_line_context(source_code, line_number),
            suggestion=suggestion or "Check syntax around this line",
        ) from e

    try:
        return ModuleTransformer(source_code).transform(tree)
    except VisitError as e:
        # Semantic errors raised inside the transformer, e.g. duplicate exports
        raise ModuleSyntaxError(
            str(e.orig_exc),
            file_path=file_path,
            suggestion="Check the module's import and export declarations",
        ) from e.orig_exc


def is_well_formed(code):
    """Return True if code lexes with balanced brackets and closed literals."""
    try:
        get_parser().parse(mask_regex_literals(code))
    except LarkError:
        return False
    return True
