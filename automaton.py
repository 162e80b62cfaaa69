from collections import defaultdict
from typing_extensions import *

EPSILON = ""  # never a valid input symbol
SYMBOLS = tuple(chr(c) for c in range(1, 256))

_SYMBOL_SET = frozenset(SYMBOLS)


class NotAtomicError(ValueError):
    """Raised when a combinator receives an automaton that is not atomic."""


class Automaton:
    """
    Nondeterministic finite automaton over single-byte symbols.

    States are the indices 0..state_count-1. The transition relation maps
    every ordered pair of states to a set of symbols; EPSILON may appear in
    such a set. The alphabet is derived and always equals the non-epsilon
    symbols used by the relation.
    """

    def __init__(
        self,
        state_count: int = 0,
        starting: Iterable[int] = (),
        final: Iterable[int] = (),
    ):
        if state_count < 0:
            raise ValueError(f"Invalid state count: {state_count}")

        self._state_count = state_count
        # Sparse rows: _relation[s1][s2] = set of symbols
        self._relation: List[Dict[int, Set[str]]] = [
            {} for _ in range(state_count)
        ]
        self._alphabet: Set[str] = set()
        self._starting: Set[int] = set()
        self._final: Set[int] = set()

        for state in starting:
            self.set_starting(state)
        for state in final:
            self.set_final(state)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_transitions(
        cls,
        transitions: Sequence[Sequence[Iterable[str]]],
        starting: Iterable[int] = (),
        final: Iterable[int] = (),
    ) -> "Automaton":
        """Adopt a full state x state matrix of symbol sets."""
        size = len(transitions)
        automaton = cls(size, starting, final)

        for s1, row in enumerate(transitions):
            if len(row) != size:
                raise ValueError(
                    f"Transition row {s1} has {len(row)} entries, expected {size}"
                )
            for s2, symbols in enumerate(row):
                for symbol in symbols:
                    automaton.connect(s1, s2, symbol)

        return automaton

    @classmethod
    def from_indexed_transitions(
        cls,
        alphabet: Iterable[str],
        table: Sequence[Sequence[Iterable[int]]],
        starting: Iterable[int] = (),
        final: Iterable[int] = (),
    ) -> "Automaton":
        """
        Build an automaton from per-symbol adjacency lists.

        table[s][i] lists the destinations of state s on the i-th symbol of
        the ordered alphabet; the extra trailing slot holds the epsilon
        destinations.
        """
        symbols = list(alphabet) if isinstance(alphabet, (list, tuple)) else sorted(alphabet)
        slots = symbols + [EPSILON]
        automaton = cls(len(table), starting, final)

        for s1, row in enumerate(table):
            if len(row) != len(slots):
                raise ValueError(
                    f"State {s1} has {len(row)} symbol slots, expected {len(slots)}"
                )
            for symbol, destinations in zip(slots, row):
                for s2 in destinations:
                    automaton.connect(s1, s2, symbol)

        return automaton

    @classmethod
    def from_relation(
        cls,
        state_count: int,
        relation: Iterable[Tuple[int, str, int]],
        starting: Iterable[int] = (),
        final: Iterable[int] = (),
    ) -> "Automaton":
        """Adopt a set of (source, symbol, target) triples."""
        automaton = cls(state_count, starting, final)
        for s1, symbol, s2 in relation:
            automaton.connect(s1, s2, symbol)
        return automaton

    def copy(self) -> "Automaton":
        return Automaton.from_relation(
            self._state_count,
            self.transition_relation,
            self._starting,
            self._final,
        )

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def _check_state(self, state: int):
        if not 0 <= state < self._state_count:
            raise ValueError(
                f"Invalid state {state} for automaton with {self._state_count} states"
            )

    def connect(self, s1: int, s2: int, symbol: str):
        """Add an edge labelled symbol from s1 to s2 (no-op if present)."""
        self._check_state(s1)
        self._check_state(s2)
        if symbol != EPSILON and symbol not in _SYMBOL_SET:
            raise ValueError(f"Invalid symbol: {symbol!r}")

        self._relation[s1].setdefault(s2, set()).add(symbol)
        if symbol != EPSILON:
            self._alphabet.add(symbol)

    def set_starting(self, state: int, value: bool = True):
        self._check_state(state)
        if value:
            self._starting.add(state)
        else:
            self._starting.discard(state)

    def set_final(self, state: int, value: bool = True):
        self._check_state(state)
        if value:
            self._final.add(state)
        else:
            self._final.discard(state)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def state_count(self) -> int:
        return self._state_count

    @property
    def alphabet(self) -> FrozenSet[str]:
        return frozenset(self._alphabet)

    @property
    def starting_states(self) -> FrozenSet[int]:
        return frozenset(self._starting)

    @property
    def final_states(self) -> FrozenSet[int]:
        return frozenset(self._final)

    @property
    def transitions(self) -> List[List[Set[str]]]:
        """Full state x state matrix of symbol sets (a fresh copy)."""
        matrix = [
            [set() for _ in range(self._state_count)]
            for _ in range(self._state_count)
        ]
        for s1, row in enumerate(self._relation):
            for s2, symbols in row.items():
                matrix[s1][s2].update(symbols)
        return matrix

    @property
    def transition_relation(self) -> FrozenSet[Tuple[int, str, int]]:
        return frozenset(
            (s1, symbol, s2)
            for s1, row in enumerate(self._relation)
            for s2, symbols in row.items()
            for symbol in symbols
        )

    def shifted_relation(self, offset: int) -> Set[Tuple[int, str, int]]:
        """Transition triples with both endpoints renumbered by offset."""
        return {
            (s1 + offset, symbol, s2 + offset)
            for (s1, symbol, s2) in self.transition_relation
        }

    def __eq__(self, other):
        if not isinstance(other, Automaton):
            return NotImplemented
        return (
            self._state_count == other._state_count
            and self._starting == other._starting
            and self._final == other._final
            and self.transition_relation == other.transition_relation
        )

    def __repr__(self):
        return (
            f"Automaton(states={self._state_count}, "
            f"starting={sorted(self._starting)}, final={sorted(self._final)}, "
            f"transitions={len(self.transition_relation)})"
        )

    # -------------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------------

    def _moves(self) -> List[Dict[str, Set[int]]]:
        """Per state: symbol -> destinations, epsilon included."""
        moves = [defaultdict(set) for _ in range(self._state_count)]
        for s1, row in enumerate(self._relation):
            for s2, symbols in row.items():
                for symbol in symbols:
                    moves[s1][symbol].add(s2)
        return moves

    def epsilon_closures(self) -> List[FrozenSet[int]]:
        """For every state, the states reachable through epsilon edges only."""
        moves = self._moves()
        closures = []

        for state in range(self._state_count):
            closure = {state}
            stack = [state]
            while stack:
                s = stack.pop()
                for next_state in moves[s].get(EPSILON, ()):
                    if next_state not in closure:
                        closure.add(next_state)
                        stack.append(next_state)
            closures.append(frozenset(closure))

        return closures

    def is_deterministic(self) -> bool:
        if len(self._starting) > 1:
            return False
        for row in self._moves():
            if EPSILON in row:
                return False
            if any(len(targets) > 1 for targets in row.values()):
                return False
        return True

    def accepts(self, word: str) -> bool:
        """Simulate the automaton on word, following every possible path."""
        moves = self._moves()
        closures = self.epsilon_closures()

        current: Set[int] = set()
        for state in self._starting:
            current.update(closures[state])

        for symbol in word:
            if symbol not in self._alphabet:
                return False
            following: Set[int] = set()
            for state in current:
                for target in moves[state].get(symbol, ()):
                    following.update(closures[target])
            if not following:
                return False
            current = following

        return bool(current & self._final)

    # -------------------------------------------------------------------------
    # Algorithms
    # -------------------------------------------------------------------------

    def reverse(self) -> "Automaton":
        """Transpose every edge and swap starting and final states."""
        return Automaton.from_relation(
            self._state_count,
            {(s2, symbol, s1) for (s1, symbol, s2) in self.transition_relation},
            starting=self._final,
            final=self._starting,
        )

    def determinize(self) -> "Automaton":
        """Subset construction. State 0 of the result is its only start state."""
        closures = self.epsilon_closures()
        moves = self._moves()
        alphabet = sorted(self._alphabet)

        start = set()
        for state in self._starting:
            start.update(closures[state])

        meta_states: List[FrozenSet[int]] = [frozenset(start)]
        indices: Dict[FrozenSet[int], int] = {meta_states[0]: 0}
        table: List[List[List[int]]] = []

        while len(table) < len(meta_states):
            current = meta_states[len(table)]
            row: List[List[int]] = []

            for symbol in alphabet:
                target_set = set()
                for q in current:
                    for target in moves[q].get(symbol, ()):
                        target_set.update(closures[target])

                if not target_set:
                    row.append([])
                    continue

                target = frozenset(target_set)
                if target not in indices:
                    indices[target] = len(meta_states)
                    meta_states.append(target)
                row.append([indices[target]])

            # epsilon slot stays empty
            row.append([])
            table.append(row)

        final = {
            index
            for index, meta_state in enumerate(meta_states)
            if meta_state & self._final
        }

        return Automaton.from_indexed_transitions(alphabet, table, {0}, final)

    def minimize(self) -> "Automaton":
        """Brzozowski: reverse, determinize, reverse, determinize."""
        return self.reverse().determinize().reverse().determinize()

    # -------------------------------------------------------------------------
    # Thompson construction
    # -------------------------------------------------------------------------

    def ensure_atomic(self):
        """Require exactly one starting state and exactly one final state."""
        if len(self._starting) != 1 or len(self._final) != 1:
            raise NotAtomicError(
                f"Automaton is not atomic: {len(self._starting)} starting and "
                f"{len(self._final)} final states"
            )

    @property
    def start(self) -> int:
        self.ensure_atomic()
        return next(iter(self._starting))

    @property
    def end(self) -> int:
        self.ensure_atomic()
        return next(iter(self._final))

    @staticmethod
    def _splice(
        automata: Sequence["Automaton"],
    ) -> Tuple["Automaton", List[Tuple[int, int]]]:
        """
        Copy every automaton into one index space between a fresh start
        state 0 and a fresh end state N-1.

        Returns the new automaton and the renumbered (start, end) pair of
        every copy.
        """
        for automaton in automata:
            automaton.ensure_atomic()

        total = 2 + sum(automaton.state_count for automaton in automata)
        result = Automaton(total, starting={0}, final={total - 1})

        spans = []
        offset = 1
        for automaton in automata:
            for s1, symbol, s2 in automaton.shifted_relation(offset):
                result.connect(s1, s2, symbol)
            spans.append((automaton.start + offset, automaton.end + offset))
            offset += automaton.state_count

        return result, spans

    @staticmethod
    def concatenation(automata: Sequence["Automaton"]) -> "Automaton":
        """Chain the automata with epsilon edges, in order."""
        result, spans = Automaton._splice(automata)

        previous_end = 0
        for start, end in spans:
            result.connect(previous_end, start, EPSILON)
            previous_end = end
        result.connect(previous_end, result.state_count - 1, EPSILON)

        return result

    @staticmethod
    def disjunction(automata: Sequence["Automaton"]) -> "Automaton":
        """Branch from a shared start into every automaton and join at the end."""
        result, spans = Automaton._splice(automata)

        global_end = result.state_count - 1
        for start, end in spans:
            result.connect(0, start, EPSILON)
            result.connect(end, global_end, EPSILON)

        return result

    @staticmethod
    def option(automaton: "Automaton") -> "Automaton":
        start, end = automaton.start, automaton.end
        result = automaton.copy()
        result.connect(start, end, EPSILON)
        return result

    @staticmethod
    def iteration(automaton: "Automaton") -> "Automaton":
        start, end = automaton.start, automaton.end
        result = automaton.copy()
        result.connect(end, start, EPSILON)
        return result

    # -------------------------------------------------------------------------
    # Printing
    # -------------------------------------------------------------------------

    def _state_label(self, state: int) -> str:
        prefix = "*" if state in self._starting else " "
        suffix = "*" if state in self._final else " "
        return f"{prefix}{state}{suffix}"

    def dump(self) -> str:
        """One line per edge, e.g. '*0  --a->  1*'; epsilon edges as '--->>'."""
        lines = []
        for s1, row in enumerate(self._relation):
            for s2 in sorted(row):
                for symbol in sorted(row[s2]):
                    arrow = "--->>" if symbol == EPSILON else f"--{symbol}->"
                    lines.append(
                        f"{self._state_label(s1)} {arrow} {self._state_label(s2)}"
                    )
        return "\n".join(lines)

    def __str__(self):
        return self.dump()
