"""
Module Grammar Definition.

This module contains the Lark grammar for the ES module surface of a
JavaScript file. Only top-level import and export declarations are parsed
into rules; every other token is kept as an opaque leaf (or a bracket group)
so the rest of the program passes through untouched.

Keywords are plain string terminals that collide with IDENT. Lark's
contextual lexer turns a word into a keyword only in parser states where that
keyword is acceptable, so `from`, `as` or `default` stay ordinary identifiers
everywhere else. A name after a dot is lexed together with the dot as a
MEMBER leaf, which keeps `o.import` and `o.export` out of the keyword states.
"""

module_grammar = r"""
    start: _item*

    _item: import_decl
         | export_decl
         | import_expr
         | _group
         | _leaf

    // --- Imports ---
    import_decl: IMPORT STRING                              -> import_bare
               | IMPORT import_clause FROM STRING           -> import_from

    import_clause: default_binding
                 | default_binding COMMA namespace_binding
                 | default_binding COMMA named_bindings
                 | namespace_binding
                 | named_bindings

    default_binding: IDENT
    namespace_binding: STAR AS IDENT
    named_bindings: LBRACE [import_specifier (COMMA import_specifier)* [COMMA]] RBRACE
    import_specifier: IDENT [AS IDENT]
                    | DEFAULT AS IDENT

    // import(...) and import.meta are expressions, not declarations
    import_expr: IMPORT paren
               | IMPORT DOT IDENT

    // --- Exports ---
    export_decl: EXPORT DEFAULT [ASYNC] FUNCTION [STAR] IDENT   -> export_default_named
               | EXPORT DEFAULT CLASS IDENT                     -> export_default_named
               | EXPORT DEFAULT [ASYNC] FUNCTION [STAR] paren   -> export_default_expr
               | EXPORT DEFAULT CLASS brace                     -> export_default_expr
               | EXPORT DEFAULT CLASS EXTENDS                   -> export_default_expr
               | EXPORT DEFAULT ASYNC                           -> export_default_expr
               | EXPORT DEFAULT                                 -> export_default_expr
               | EXPORT [ASYNC] FUNCTION [STAR] IDENT           -> export_function
               | EXPORT CLASS IDENT                             -> export_class
               | EXPORT _var_kind _binding                      -> export_variable
               | EXPORT export_list                             -> export_names
               | EXPORT export_list FROM STRING                 -> export_from
               | EXPORT STAR FROM STRING                        -> export_all
               | EXPORT STAR AS IDENT FROM STRING               -> export_namespace

    export_list: LBRACE [export_specifier (COMMA export_specifier)* [COMMA]] RBRACE
    export_specifier: _export_name [AS _export_name]
    _export_name: IDENT | DEFAULT

    _var_kind: CONST | LET | VAR
    _binding: IDENT | brace | bracket

    // --- Opaque code ---
    _group: brace | paren | bracket
    brace: LBRACE _inner* RBRACE
    paren: LPAR _inner* RPAR
    bracket: LSQB _inner* RSQB
    _inner: _group | _leaf

    _leaf: IDENT | MEMBER | NUMBER | STRING | TEMPLATE | REGEX | PUNCT

    // --- Keywords ---
    IMPORT: "import"
    EXPORT: "export"
    FROM: "from"
    AS: "as"
    DEFAULT: "default"
    ASYNC: "async"
    FUNCTION: "function"
    CLASS: "class"
    EXTENDS: "extends"
    CONST: "const"
    LET: "let"
    VAR: "var"

    // --- Punctuation used by declarations ---
    LBRACE: "{"
    RBRACE: "}"
    LPAR: "("
    RPAR: ")"
    LSQB: "["
    RSQB: "]"
    COMMA: ","
    STAR: "*"
    DOT: "."

    // --- Terminals ---
    IDENT: /(?:[^\W\d]|\$)[\w$]*/
    NUMBER: /(?:0[xXoObB][\da-fA-F_]+|(?:\d[\d_]*\.?[\d_]*|\.\d[\d_]*)(?:[eE][+-]?\d+)?)n?/
    STRING: /"(?:[^"\\\n]|\\[\s\S])*"|'(?:[^'\\\n]|\\[\s\S])*'/
    TEMPLATE: /`(?:[^`\\$]|\\[\s\S]|\$(?!\{)|\$\{(?:[^{}`]|`(?:[^`\\]|\\[\s\S])*`|\{[^{}]*\})*\})*`/

    // A property name after `.` or `?.`, so `o.export` never reads as a keyword
    MEMBER: /\??\.[ \t\r\n]*(?:[^\W\d]|\$)[\w$]*/

    // A slash starts a regex literal only where an operand is expected,
    // judged by the character just before it. parse_module blanks regex
    // bodies first, so this only has to keep them in one piece.
    REGEX.2: /(?:(?<![\s\S])|(?<=[(,=:\[!&|?{};+\-*%<>~^\n])|(?<=[(,=:\[!&|?{};+\-*%<>~^\n] )|(?<=return )|(?<=typeof )|(?<=case ))\/(?![*\/])(?:[^\/\\\[\n]|\\.|\[(?:[^\]\\\n]|\\.)*\])+\/[a-z]*/

    PUNCT: />>>=|\.\.\.|===|!==|\*\*=|<<=|>>=|>>>|&&=|\|\|=|\?\?=|=>|==|!=|<=|>=|&&|\|\||\?\?|\?\.|\+\+|--|\*\*|<<|>>|[-+*\/%&|^]=|[-+*\/%&|^<>!=~?:;,.@#]/

    WS: /\s+/
    LINE_COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//
    HASHBANG: /(?<![\s\S])#![^\n]*/

    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
    %ignore HASHBANG
"""
