"""
Script Expression Evaluator

Implements the subset of articy's expresso script used by gating pins,
Condition nodes and Instruction nodes:
- Literals: integers, "strings" / 'strings', true, false
- Variables: dotted names resolved against the variable store
- Arithmetic: + - * / % (+ also joins strings)
- Comparison: == != > >= < <=
- Logical: && || ! (and, or, not), short-circuit, boolean operands only
- Assignment: = += -= *= /= %=, statements separated by ;

Secure implementation: no eval(), using recursive descent parser
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import ExpressionError, FailedToGetState, FailedToSetState
from ..core.state import StateValue, VariableStore, value_type_name

logger = logging.getLogger(__name__)

DIGITS = "0123456789"


class TokenType(Enum):
    """Lexical token types"""

    # Literals
    NUMBER = "NUMBER"
    STRING = "STRING"
    BOOLEAN = "BOOLEAN"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # Comparison operators
    EQ = "=="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="

    # Logical operators
    AND = "&&"
    OR = "||"
    NOT = "!"

    # Arithmetic operators
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"

    # Assignment operators
    ASSIGN = "="
    PLUS_ASSIGN = "+="
    MINUS_ASSIGN = "-="
    STAR_ASSIGN = "*="
    SLASH_ASSIGN = "/="
    PERCENT_ASSIGN = "%="

    # Grouping and separators
    LPAREN = "("
    RPAREN = ")"
    SEMICOLON = ";"

    # End
    EOF = "EOF"


ASSIGNMENT_TOKENS = {
    TokenType.ASSIGN: None,
    TokenType.PLUS_ASSIGN: TokenType.PLUS,
    TokenType.MINUS_ASSIGN: TokenType.MINUS,
    TokenType.STAR_ASSIGN: TokenType.STAR,
    TokenType.SLASH_ASSIGN: TokenType.SLASH,
    TokenType.PERCENT_ASSIGN: TokenType.PERCENT,
}

# Longest operators first
OPERATORS: List[Tuple[str, TokenType]] = [
    ("==", TokenType.EQ),
    ("!=", TokenType.NE),
    (">=", TokenType.GTE),
    ("<=", TokenType.LTE),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
    ("+=", TokenType.PLUS_ASSIGN),
    ("-=", TokenType.MINUS_ASSIGN),
    ("*=", TokenType.STAR_ASSIGN),
    ("/=", TokenType.SLASH_ASSIGN),
    ("%=", TokenType.PERCENT_ASSIGN),
    (">", TokenType.GT),
    ("<", TokenType.LT),
    ("!", TokenType.NOT),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.STAR),
    ("/", TokenType.SLASH),
    ("%", TokenType.PERCENT),
    ("=", TokenType.ASSIGN),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    (";", TokenType.SEMICOLON),
]

KEYWORDS = {
    "true": (TokenType.BOOLEAN, True),
    "false": (TokenType.BOOLEAN, False),
    "and": (TokenType.AND, "&&"),
    "or": (TokenType.OR, "||"),
    "not": (TokenType.NOT, "!"),
}

ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "'": "'"}


@dataclass
class Token:
    """Lexical token"""

    type: TokenType
    value: Any
    position: int


class Lexer:
    """Lexer"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.current_char = self.text[0] if self.text else None

    def advance(self, count: int = 1) -> None:
        self.pos += count
        self.current_char = self.text[self.pos] if self.pos < len(self.text) else None

    def skip_whitespace_and_comments(self) -> None:
        while self.current_char is not None:
            if self.current_char.isspace():
                self.advance()
            elif self.text.startswith("//", self.pos):
                while self.current_char is not None and self.current_char != "\n":
                    self.advance()
            else:
                break

    def read_number(self) -> Token:
        start = self.pos
        while self.current_char is not None and self.current_char in DIGITS:
            self.advance()
        if self.current_char is not None and (
            self.current_char.isalpha() or self.current_char in "._"
        ):
            raise ExpressionError(
                f"Invalid number literal at position {start}", {"position": start}
            )
        try:
            value = int(self.text[start : self.pos])
        except ValueError as e:
            raise ExpressionError(
                f"Number literal too long at position {start}", {"position": start}
            ) from e
        return Token(TokenType.NUMBER, value, start)

    def read_string(self) -> Token:
        start = self.pos
        quote = self.current_char
        self.advance()  # Skip opening quote

        chars = []
        while self.current_char is not None and self.current_char != quote:
            if self.current_char == "\\":
                self.advance()
                if self.current_char is None:
                    break
                chars.append(ESCAPES.get(self.current_char, self.current_char))
            else:
                chars.append(self.current_char)
            self.advance()

        if self.current_char is None:
            raise ExpressionError(
                f"Unterminated string starting at position {start}", {"position": start}
            )

        self.advance()  # Skip closing quote
        return Token(TokenType.STRING, "".join(chars), start)

    def read_identifier(self) -> Token:
        """Read dotted identifier or keyword"""
        start = self.pos
        while self.current_char is not None and (
            self.current_char.isalnum() or self.current_char == "_"
        ):
            self.advance()
            # Namespace separator must be followed by a name
            if self.current_char == "." and self.pos + 1 < len(self.text):
                following = self.text[self.pos + 1]
                if following.isalpha() or following == "_":
                    self.advance()

        value = self.text[start : self.pos]
        if value in KEYWORDS:
            token_type, token_value = KEYWORDS[value]
            return Token(token_type, token_value, start)

        return Token(TokenType.IDENTIFIER, value, start)

    def next_token(self) -> Token:
        self.skip_whitespace_and_comments()

        if self.current_char is None:
            return Token(TokenType.EOF, None, self.pos)

        start = self.pos

        if self.current_char in DIGITS:
            return self.read_number()

        if self.current_char in "\"'":
            return self.read_string()

        if self.current_char.isalpha() or self.current_char == "_":
            return self.read_identifier()

        for text, token_type in OPERATORS:
            if self.text.startswith(text, self.pos):
                self.advance(len(text))
                return Token(token_type, text, start)

        raise ExpressionError(
            f"Unexpected character: {self.current_char} at position {self.pos}",
            {"position": self.pos},
        )

    def tokenize(self) -> List[Token]:
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                return tokens


# AST node classes
class ASTNode:
    """AST node base class"""

    def evaluate(self, store: VariableStore) -> Any:
        raise NotImplementedError


class LiteralNode(ASTNode):
    def __init__(self, value: StateValue):
        self.value = value

    def evaluate(self, store: VariableStore) -> Any:
        return self.value


class VariableNode(ASTNode):
    """Variable reference"""

    def __init__(self, name: str):
        self.name = name

    def evaluate(self, store: VariableStore) -> Any:
        try:
            return store.get(self.name)
        except FailedToGetState:
            raise ExpressionError(f"Unknown variable: {self.name}", {"name": self.name})


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_bool(value: Any, op: str) -> bool:
    if not isinstance(value, bool):
        raise ExpressionError(
            f"Operator {op} expects Boolean operands, got {value_type_name(value)}"
        )
    return value


def _truncated_div(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def apply_binary(op: TokenType, left: Any, right: Any) -> Any:
    """Apply a non-logical binary operator with script typing rules"""
    if op == TokenType.EQ:
        return value_type_name(left) == value_type_name(right) and left == right
    if op == TokenType.NE:
        return not (value_type_name(left) == value_type_name(right) and left == right)

    if op in (TokenType.GT, TokenType.GTE, TokenType.LT, TokenType.LTE):
        comparable = (_is_int(left) and _is_int(right)) or (
            isinstance(left, str) and isinstance(right, str)
        )
        if not comparable:
            raise ExpressionError(
                f"Type mismatch in comparison: {value_type_name(left)} {op.value} {value_type_name(right)}"
            )
        if op == TokenType.GT:
            return left > right
        if op == TokenType.GTE:
            return left >= right
        if op == TokenType.LT:
            return left < right
        return left <= right

    if op == TokenType.PLUS and isinstance(left, str) and isinstance(right, str):
        return left + right

    if not (_is_int(left) and _is_int(right)):
        raise ExpressionError(
            f"Type mismatch in arithmetic: {value_type_name(left)} {op.value} {value_type_name(right)}"
        )

    if op == TokenType.PLUS:
        return left + right
    if op == TokenType.MINUS:
        return left - right
    if op == TokenType.STAR:
        return left * right

    if right == 0:
        raise ExpressionError("Division by zero")
    if op == TokenType.SLASH:
        return _truncated_div(left, right)
    if op == TokenType.PERCENT:
        return left - right * _truncated_div(left, right)

    raise ExpressionError(f"Unknown operator: {op.value}")


class BinaryNode(ASTNode):
    def __init__(self, op: TokenType, left: ASTNode, right: ASTNode):
        self.op = op
        self.left = left
        self.right = right

    def evaluate(self, store: VariableStore) -> Any:
        left = self.left.evaluate(store)
        right = self.right.evaluate(store)
        return apply_binary(self.op, left, right)


# Logical operator nodes (with short-circuit support)
class AndNode(ASTNode):
    def __init__(self, left: ASTNode, right: ASTNode):
        self.left = left
        self.right = right

    def evaluate(self, store: VariableStore) -> Any:
        if not _require_bool(self.left.evaluate(store), "&&"):
            return False
        return _require_bool(self.right.evaluate(store), "&&")


class OrNode(ASTNode):
    def __init__(self, left: ASTNode, right: ASTNode):
        self.left = left
        self.right = right

    def evaluate(self, store: VariableStore) -> Any:
        if _require_bool(self.left.evaluate(store), "||"):
            return True
        return _require_bool(self.right.evaluate(store), "||")


class NotNode(ASTNode):
    def __init__(self, operand: ASTNode):
        self.operand = operand

    def evaluate(self, store: VariableStore) -> Any:
        return not _require_bool(self.operand.evaluate(store), "!")


class NegateNode(ASTNode):
    def __init__(self, operand: ASTNode):
        self.operand = operand

    def evaluate(self, store: VariableStore) -> Any:
        value = self.operand.evaluate(store)
        if not _is_int(value):
            raise ExpressionError(f"Cannot negate {value_type_name(value)}")
        return -value


class AssignNode(ASTNode):
    """Assignment statement; evaluates to None"""

    def __init__(self, name: str, op: TokenType, value: ASTNode):
        self.name = name
        self.op = op
        self.value = value

    def evaluate(self, store: VariableStore) -> Any:
        value = self.value.evaluate(store)

        arithmetic = ASSIGNMENT_TOKENS[self.op]
        if arithmetic is not None:
            current = VariableNode(self.name).evaluate(store)
            value = apply_binary(arithmetic, current, value)

        try:
            store.set(self.name, value)
        except FailedToSetState as e:
            raise ExpressionError(e.message, e.details)
        return None


class ProgramNode(ASTNode):
    """Statement sequence; evaluates to the value of the last statement"""

    def __init__(self, statements: List[ASTNode]):
        self.statements = statements

    def has_assignment(self) -> bool:
        return any(isinstance(s, AssignNode) for s in self.statements)

    def evaluate(self, store: VariableStore) -> Any:
        result = None
        for statement in self.statements:
            result = statement.evaluate(store)
        return result


class Parser:
    """Recursive descent parser"""

    # Precedence, lowest first
    EQUALITY_OPS = (TokenType.EQ, TokenType.NE)
    COMPARISON_OPS = (TokenType.GT, TokenType.GTE, TokenType.LT, TokenType.LTE)
    ADDITIVE_OPS = (TokenType.PLUS, TokenType.MINUS)
    MULTIPLICATIVE_OPS = (TokenType.STAR, TokenType.SLASH, TokenType.PERCENT)

    def __init__(self, text: str):
        self.tokens = Lexer(text).tokenize()
        self.pos = 0

    @property
    def current_token(self) -> Token:
        return self.tokens[self.pos]

    def peek(self) -> Token:
        return self.tokens[min(self.pos + 1, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current_token
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def expect(self, token_type: TokenType) -> Token:
        if self.current_token.type == token_type:
            return self.advance()
        raise ExpressionError(
            f"Expected {token_type.value}, got {self.current_token.type.value} "
            f"at position {self.current_token.position}"
        )

    def parse(self) -> ProgramNode:
        """Parse ;-separated statements"""
        statements = []

        while self.current_token.type != TokenType.EOF:
            if self.current_token.type == TokenType.SEMICOLON:
                self.advance()
                continue

            statements.append(self.parse_statement())

            if self.current_token.type not in (TokenType.SEMICOLON, TokenType.EOF):
                raise ExpressionError(
                    f"Unexpected token: {self.current_token.value} "
                    f"at position {self.current_token.position}"
                )

        return ProgramNode(statements)

    def parse_statement(self) -> ASTNode:
        if (
            self.current_token.type == TokenType.IDENTIFIER
            and self.peek().type in ASSIGNMENT_TOKENS
        ):
            name = self.advance().value
            op = self.advance().type
            return AssignNode(name, op, self.parse_or())

        return self.parse_or()

    def parse_or(self) -> ASTNode:
        node = self.parse_and()
        while self.current_token.type == TokenType.OR:
            self.advance()
            node = OrNode(node, self.parse_and())
        return node

    def parse_and(self) -> ASTNode:
        node = self.parse_equality()
        while self.current_token.type == TokenType.AND:
            self.advance()
            node = AndNode(node, self.parse_equality())
        return node

    def parse_equality(self) -> ASTNode:
        node = self.parse_comparison()
        while self.current_token.type in self.EQUALITY_OPS:
            op = self.advance().type
            node = BinaryNode(op, node, self.parse_comparison())
        return node

    def parse_comparison(self) -> ASTNode:
        node = self.parse_additive()
        while self.current_token.type in self.COMPARISON_OPS:
            op = self.advance().type
            node = BinaryNode(op, node, self.parse_additive())
        return node

    def parse_additive(self) -> ASTNode:
        node = self.parse_multiplicative()
        while self.current_token.type in self.ADDITIVE_OPS:
            op = self.advance().type
            node = BinaryNode(op, node, self.parse_multiplicative())
        return node

    def parse_multiplicative(self) -> ASTNode:
        node = self.parse_unary()
        while self.current_token.type in self.MULTIPLICATIVE_OPS:
            op = self.advance().type
            node = BinaryNode(op, node, self.parse_unary())
        return node

    def parse_unary(self) -> ASTNode:
        if self.current_token.type == TokenType.NOT:
            self.advance()
            return NotNode(self.parse_unary())
        if self.current_token.type == TokenType.MINUS:
            self.advance()
            return NegateNode(self.parse_unary())
        return self.parse_primary()

    def parse_primary(self) -> ASTNode:
        token = self.current_token

        if token.type == TokenType.LPAREN:
            self.advance()
            node = self.parse_or()
            self.expect(TokenType.RPAREN)
            return node

        if token.type in (TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN):
            self.advance()
            return LiteralNode(token.value)

        if token.type == TokenType.IDENTIFIER:
            self.advance()
            return VariableNode(token.value)

        if token.type == TokenType.EOF:
            raise ExpressionError("Unexpected end of expression")

        raise ExpressionError(
            f"Unexpected token: {token.value} at position {token.position}"
        )


class ScriptEvaluator:
    """
    Script evaluator

    Parses expressions once and caches the AST. Boolean evaluation never
    writes to the store: expressions containing assignments are rejected.
    """

    def __init__(self):
        self._cache: Dict[str, ProgramNode] = {}

    def parse(self, expression: str) -> ProgramNode:
        if expression not in self._cache:
            try:
                self._cache[expression] = Parser(expression).parse()
            except RecursionError as e:
                raise ExpressionError(
                    "Expression is nested too deeply", {"length": len(expression)}
                ) from e
        return self._cache[expression]

    def _run(self, program: ProgramNode, store: VariableStore) -> Optional[StateValue]:
        try:
            return program.evaluate(store)
        except (RecursionError, ValueError) as e:
            raise ExpressionError(f"Evaluation failed: {e}") from e

    def evaluate_boolean(self, expression: str, store: VariableStore) -> bool:
        """
        Evaluate a boolean expression

        Raises:
            ExpressionError: syntax error, unknown variable, type mismatch,
                assignment, or a non-Boolean result
        """
        program = self.parse(expression)

        if not program.statements:
            raise ExpressionError("Empty expression")
        if len(program.statements) > 1 or program.has_assignment():
            raise ExpressionError(
                f"Boolean expression must be a single expression without assignments: {expression}"
            )

        result = self._run(program, store)
        if not isinstance(result, bool):
            raise ExpressionError(
                f"Expression did not evaluate to a Boolean: {expression}",
                {"result_type": value_type_name(result)},
            )
        return result

    def evaluate_gate(self, expression: str, store: VariableStore) -> bool:
        """Fail-closed boolean evaluation: any error counts as False"""
        try:
            return self.evaluate_boolean(expression, store)
        except ExpressionError as e:
            logger.debug("Expression %r evaluated as false: %s", expression, e.message)
            return False

    def evaluate_and_mutate(
        self, expression: str, store: VariableStore
    ) -> Optional[StateValue]:
        """
        Execute statements against the store

        Returns:
            Value of the last statement, None for assignments or empty input

        Raises:
            ExpressionError: parse or evaluation failure; statements before
                the failing one stay applied
        """
        return self._run(self.parse(expression), store)

    def clear_cache(self) -> None:
        self._cache.clear()


# Global evaluator instance
_default_evaluator: Optional[ScriptEvaluator] = None


def get_evaluator() -> ScriptEvaluator:
    """Get global script evaluator instance"""
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = ScriptEvaluator()
    return _default_evaluator


def evaluate_condition(expression: str, store: VariableStore) -> bool:
    """Convenience function: evaluate a boolean expression"""
    return get_evaluator().evaluate_boolean(expression, store)


def execute_instruction(expression: str, store: VariableStore) -> Optional[StateValue]:
    """Convenience function: execute statements against the store"""
    return get_evaluator().evaluate_and_mutate(expression, store)
