from dataclasses import dataclass
from typing_extensions import *

from automaton import SYMBOLS, Automaton

OPERATORS = "+*?.|()[]"
MAX_NESTING = 100

_SYMBOL_SET = frozenset(SYMBOLS)


class RegexSyntaxError(ValueError):
    """Raised for malformed patterns. No partial result is ever produced."""

    def __init__(self, message: str, position: Optional[int] = None):
        text = message if position is None else f"{message} at position {position}"
        super().__init__(text)
        self.message = message
        self.position = position


# -----------------------------------------------------------------------------
# AST
# -----------------------------------------------------------------------------


def _pad(indent: int) -> str:
    return " " * (4 * indent)


class Node:
    """Base of the regex syntax tree. Every variant compiles to an automaton."""

    def compile(self) -> Automaton:
        raise NotImplementedError

    def _describe(self, indent: int) -> List[str]:
        raise NotImplementedError

    def describe(self) -> str:
        """Indented, human-readable dump of the tree."""
        return "\n".join(self._describe(0))

    @property
    def children(self) -> Tuple["Node", ...]:
        return ()

    def height(self) -> int:
        """Number of nodes on the longest root-to-leaf path."""
        height = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            height = max(height, level)
            stack.extend((child, level + 1) for child in node.children)
        return height


def _describe_children(name: str, children: Iterable[Node], indent: int) -> List[str]:
    lines = [f"{_pad(indent)}{name} {{"]
    for child in children:
        lines.extend(child._describe(indent + 1))
    lines.append(f"{_pad(indent)}}}")
    return lines


def _single_edge(symbols: Iterable[str]) -> Automaton:
    automaton = Automaton(2, starting={0}, final={1})
    for symbol in symbols:
        automaton.connect(0, 1, symbol)
    return automaton


@dataclass(frozen=True)
class CharacterNode(Node):
    symbol: str

    def compile(self) -> Automaton:
        return _single_edge(self.symbol)

    def _describe(self, indent: int) -> List[str]:
        symbol = '\\"' if self.symbol == '"' else self.symbol
        return [f'{_pad(indent)}CharacterNode {{ "{symbol}" }}']


@dataclass(frozen=True)
class CharacterSetNode(Node):
    # Inclusive (low, high) pairs; ranges may overlap
    ranges: Tuple[Tuple[str, str], ...]

    def compile(self) -> Automaton:
        return _single_edge(
            chr(code)
            for low, high in self.ranges
            for code in range(ord(low), ord(high) + 1)
        )

    def _describe(self, indent: int) -> List[str]:
        lines = [f"{_pad(indent)}CharacterSetNode {{"]
        for low, high in self.ranges:
            if low != high:
                lines.append(f"{_pad(indent + 1)}Range {{ {low}-{high} }}")
            else:
                lines.append(f"{_pad(indent + 1)}Character {{ {low} }}")
        lines.append(f"{_pad(indent)}}}")
        return lines


@dataclass(frozen=True)
class WildcardNode(Node):
    def compile(self) -> Automaton:
        return _single_edge(SYMBOLS)

    def _describe(self, indent: int) -> List[str]:
        return [f"{_pad(indent)}WildcardNode {{}}"]


@dataclass(frozen=True)
class ConcatenationNode(Node):
    nodes: Tuple[Node, ...]

    @property
    def children(self) -> Tuple[Node, ...]:
        return self.nodes

    def compile(self) -> Automaton:
        return Automaton.concatenation([node.compile() for node in self.nodes])

    def _describe(self, indent: int) -> List[str]:
        return _describe_children("ConcatenationNode", self.nodes, indent)


@dataclass(frozen=True)
class GroupNode(Node):
    # Alternatives
    nodes: Tuple[Node, ...]

    @property
    def children(self) -> Tuple[Node, ...]:
        return self.nodes

    def compile(self) -> Automaton:
        return Automaton.disjunction([node.compile() for node in self.nodes])

    def _describe(self, indent: int) -> List[str]:
        return _describe_children("GroupNode", self.nodes, indent)


@dataclass(frozen=True)
class IterationNode(Node):
    node: Node

    @property
    def children(self) -> Tuple[Node, ...]:
        return (self.node,)

    def compile(self) -> Automaton:
        return Automaton.iteration(self.node.compile())

    def _describe(self, indent: int) -> List[str]:
        return _describe_children("IterationNode", [self.node], indent)


@dataclass(frozen=True)
class OptionalNode(Node):
    node: Node

    @property
    def children(self) -> Tuple[Node, ...]:
        return (self.node,)

    def compile(self) -> Automaton:
        return Automaton.option(self.node.compile())

    def _describe(self, indent: int) -> List[str]:
        return _describe_children("OptionalNode", [self.node], indent)


# -----------------------------------------------------------------------------
# Lexer
# -----------------------------------------------------------------------------


class Token(NamedTuple):
    symbol: Optional[str]  # None at end of input
    operator: bool = False
    escaped: bool = False
    position: int = 0

    @property
    def at_end(self) -> bool:
        return self.symbol is None

    def is_operator(self, char: str) -> bool:
        return self.operator and self.symbol == char

    def is_range_hyphen(self) -> bool:
        return self.symbol == "-" and not self.escaped


class _ParserState:
    """Cursor over the pattern holding the single lookahead token."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.pos = 0
        self.depth = 0
        self.token = self._read()

    def _read(self) -> Token:
        start = self.pos

        if self.pos >= len(self.pattern):
            return Token(None, position=start)

        char = self.pattern[self.pos]
        self.pos += 1

        if char == "\\":
            if self.pos >= len(self.pattern):
                raise RegexSyntaxError("invalid escape sequence", start)
            char = self.pattern[self.pos]
            self.pos += 1
            token = Token(char, escaped=True, position=start)
        else:
            token = Token(char, operator=char in OPERATORS, position=start)

        if char not in _SYMBOL_SET:
            raise RegexSyntaxError(f"unsupported character {char!r}", start)

        return token

    def advance(self) -> Token:
        """Consume the current token and return it."""
        token = self.token
        self.token = self._read()
        return token

    def check(self, char: str) -> bool:
        return self.token.is_operator(char)

    def accept(self, char: str) -> bool:
        if self.check(char):
            self.advance()
            return True
        return False


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


def _unexpected(token: Token) -> RegexSyntaxError:
    return RegexSyntaxError(f"unexpected character '{token.symbol}'", token.position)


def _alternation(state: _ParserState, allow_empty: bool = False) -> Node:
    start = state.token.position
    branches = [_expr(state)]
    empty = state.token.position == start

    # Outside a group every alternative must consume at least one token
    while state.check("|"):
        bar = state.advance()
        start = state.token.position
        branches.append(_expr(state))
        if not allow_empty and (empty or state.token.position == start):
            raise _unexpected(bar)

    return branches[0] if len(branches) == 1 else GroupNode(tuple(branches))


def _expr(state: _ParserState) -> Node:
    nodes = []

    while not (state.token.at_end or state.check("|") or state.check(")")):
        nodes.append(_suffix(state))

    return nodes[0] if len(nodes) == 1 else ConcatenationNode(tuple(nodes))


def _suffix(state: _ParserState) -> Node:
    node = _term(state)

    while True:
        token = state.token
        if state.accept("+"):
            node = IterationNode(node)
        elif state.accept("*"):
            node = OptionalNode(IterationNode(node))
        elif state.accept("?"):
            node = OptionalNode(node)
        else:
            return node

        # Quantifiers deepen the tree as much as groups do
        if state.depth + node.height() > MAX_NESTING:
            raise RegexSyntaxError("pattern nested too deeply", token.position)


def _term(state: _ParserState) -> Node:
    token = state.token

    if state.accept("."):
        return WildcardNode()

    if state.accept("("):
        state.depth += 1
        try:
            if state.depth > MAX_NESTING:
                raise RegexSyntaxError("pattern nested too deeply", token.position)

            node = _alternation(state, allow_empty=True)

            if not state.accept(")"):
                raise RegexSyntaxError("unmatched parentheses", token.position)
        finally:
            state.depth -= 1
        return node

    if state.accept("["):
        return _character_set(state, token)

    if token.operator:
        raise _unexpected(token)

    state.advance()
    return CharacterNode(token.symbol)


def _character_set(state: _ParserState, opening: Token) -> Node:
    ranges = []

    while not state.check("]"):
        token = state.token
        if token.at_end:
            raise RegexSyntaxError("unmatched brackets", opening.position)
        if token.is_range_hyphen():
            raise RegexSyntaxError("invalid character set", token.position)

        # Operators lose their meaning inside a class
        state.advance()
        low = high = token.symbol

        if state.token.is_range_hyphen():
            state.advance()
            upper = state.token
            if upper.at_end:
                raise RegexSyntaxError("unmatched brackets", opening.position)
            if state.check("]"):
                raise RegexSyntaxError("invalid character set", upper.position)
            state.advance()
            high = upper.symbol

        if high < low:
            raise RegexSyntaxError("invalid character set", token.position)

        ranges.append((low, high))

    state.advance()
    return CharacterSetNode(tuple(ranges))


def parse(pattern: str) -> Node:
    """Parse a pattern into its syntax tree."""
    state = _ParserState(pattern)
    node = _alternation(state)

    if not state.token.at_end:
        raise _unexpected(state.token)

    return node


# -----------------------------------------------------------------------------
# Facade
# -----------------------------------------------------------------------------


class RegularExpression:
    """
    Regular expression compiled to a minimal deterministic automaton.

    Supports:
    - Concatenation: ab
    - Alternation: a|b, (a|b)
    - Iteration: a+, a*, a?
    - Wildcard: .
    - Character classes: [a-z0-9_]
    - Escapes: \\+ matches a literal '+'
    """

    def __init__(self, pattern: str = ""):
        self.pattern = pattern
        self.automaton = RegularExpression.build(pattern)

        # The minimal automaton is deterministic with start state 0
        self._start = next(iter(self.automaton.starting_states))
        self._table: Dict[Tuple[int, str], int] = {
            (s1, symbol): s2
            for (s1, symbol, s2) in self.automaton.transition_relation
        }

    def __str__(self):
        return f"RegEx: {self.pattern}"

    @staticmethod
    def parse(pattern: str) -> Node:
        return parse(pattern)

    @staticmethod
    def compile(pattern: str) -> Automaton:
        """Thompson automaton for pattern, epsilon edges included."""
        return parse(pattern).compile()

    @staticmethod
    def build(pattern: str) -> Automaton:
        """Minimal deterministic automaton for pattern."""
        return RegularExpression.compile(pattern).minimize()

    def match(self, text: str) -> bool:
        """True if the whole of text is in the language of the pattern."""
        state = self._start
        for symbol in text:
            state = self._table.get((state, symbol))
            if state is None:
                return False
        return state in self.automaton.final_states
