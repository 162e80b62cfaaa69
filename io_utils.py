import os
import re
from typing_extensions import *

from automaton import EPSILON, Automaton
from regular_expression import RegularExpression

EPSILON_NAMES = ["eps", "epsilon", "ε"]


def detect_regex(content: str) -> bool:
    lines = [
        line.strip()
        for line in content.strip().split("\n")
        if line.strip() and not line.strip().startswith("#")
    ]

    return bool(lines) and (
        lines[0].lower().startswith("regex:")
        or lines[0].lower().startswith("pattern:")
    )


def _regex_pattern(content: str) -> str:
    for line in content.strip().split("\n"):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower().startswith("regex:"):
            return line[6:].strip()
        if line.lower().startswith("pattern:"):
            return line[8:].strip()
    raise ValueError("No pattern found")


def _state_key(name: str):
    # Numeric names sort by value so that "10" follows "9"
    return (0, int(name), "") if name.isdigit() else (1, 0, name)


def parse_symbol(symbol: str) -> str:
    if symbol.lower() in EPSILON_NAMES:
        return EPSILON
    if len(symbol) != 1:
        raise ValueError(f"Invalid symbol '{symbol}': expected a single character")
    return symbol


def parse_automaton(content: str) -> Tuple[Automaton, Dict[str, int]]:
    """
    Parse one automaton description.

    Format:
        states: q0 q1 q2      (or a count, e.g. "states: 3" for 0 1 2)
        start: q0
        accept: q2
        q0 -> a -> q1         (or "q0 a q1"; eps/epsilon/ε for epsilon)

    State names are numbered in sorted order. Returns the automaton and the
    name -> index mapping.
    """
    states: Set[str] = set()
    starting: Set[str] = set()
    accepting: Set[str] = set()
    transitions: Set[Tuple[str, str, str]] = set()

    for line in content.strip().split("\n"):
        line = line.strip()

        if not line or line.startswith("#"):
            continue

        elif line.startswith("states:"):
            state_list = line[7:].strip().split()
            if len(state_list) == 1 and state_list[0].isdigit():
                states.update(str(i) for i in range(int(state_list[0])))
            else:
                states.update(state_list)

        elif line.startswith("start:"):
            starting.update(line[6:].strip().split())

        elif line.startswith("accept:"):
            accepting.update(line[7:].strip().split())

        elif "->" in line:
            parts = [p.strip() for p in line.split("->")]
            if len(parts) != 3:
                raise ValueError(f"Invalid transition: {line}")
            src, symbol, tgt = parts
            transitions.add((src, parse_symbol(symbol), tgt))

        elif len(line.split()) == 3:
            src, symbol, tgt = line.split()
            transitions.add((src, parse_symbol(symbol), tgt))

        else:
            raise ValueError(f"Cannot parse line: {line}")

    # States used but not declared
    for src, _, tgt in transitions:
        states.update((src, tgt))
    states.update(starting)
    states.update(accepting)

    indices = {s: i for i, s in enumerate(sorted(states, key=_state_key))}

    automaton = Automaton.from_relation(
        len(indices),
        {(indices[src], symbol, indices[tgt]) for src, symbol, tgt in transitions},
        starting={indices[s] for s in starting},
        final={indices[s] for s in accepting},
    )
    return automaton, indices


def load_from_file(
    filename: str,
) -> Tuple[Dict[str, Automaton], Dict[str, RegularExpression]]:
    automata: Dict[str, Automaton] = {}
    regexes: Dict[str, RegularExpression] = {}

    with open(filename, "r", encoding="utf-8") as f:
        content = f.read()

    # Format keywords with an empty value are not section names
    name_pattern = re.compile(
        r"^(?!(?:states|start|accept|regex|pattern):)([A-Za-z]\w*):[ \t]*$",
        re.MULTILINE,
    )

    if name_pattern.search(content):
        # Named sections: NAME:\n...definition...
        sections = name_pattern.split(content)

        for i in range(1, len(sections), 2):
            if i + 1 >= len(sections):
                continue

            name = sections[i].strip()
            definition = sections[i + 1].strip()

            if not definition:
                continue

            if detect_regex(definition):
                try:
                    regexes[name] = RegularExpression(_regex_pattern(definition))
                except Exception as e:
                    print(f"Warning: Failed to load regex '{name}': {e}")
            else:
                try:
                    automata[name], _ = parse_automaton(definition)
                except Exception as e:
                    print(f"Warning: Failed to load automaton '{name}': {e}")
    else:
        # Single unnamed item, or several automata separated by ---
        base_name = os.path.basename(filename).rsplit(".", 1)[0]

        if detect_regex(content):
            try:
                regexes[base_name] = RegularExpression(_regex_pattern(content))
            except Exception as e:
                print(f"Warning: Failed to load regex: {e}")
        else:
            blocks = [block for block in content.split("---") if block.strip()]
            for idx, block in enumerate(blocks):
                key = f"{base_name}{idx if idx > 0 else ''}"
                try:
                    automata[key], _ = parse_automaton(block)
                except Exception as e:
                    print(f"Warning: Failed to load automaton '{key}': {e}")

    return automata, regexes
