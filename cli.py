from typing_extensions import *

from automaton import Automaton
from io_utils import EPSILON_NAMES, load_from_file, parse_symbol
from regular_expression import RegularExpression

HELP = """
Commands:
  LOADING:
    load <file>                  - Load automata/regexes from file
    list                         - List all loaded items

  BUILDING:
    new <name> <states>          - Create an empty automaton
    connect <n> <s1> <s2> <sym>  - Add a transition (sym: a single character or eps)
    starting <n> <state> [off]   - Mark (or unmark) a starting state
    final <n> <state> [off]      - Mark (or unmark) a final state

  AUTOMATA OPERATIONS:
    show <name>                  - Show automaton info
    print <name>                 - Print all transitions
    test <name> <word>           - Test if word is accepted

    TRANSFORMATIONS:
      rev <name> [result]        - Reverse
      det <name> [result]        - Determinize (subset construction)
      min <name> [result]        - Minimize

  REGEX OPERATIONS:
    regex <name> <pattern>       - Compile pattern to an automaton (Thompson)
    build <name> <pattern>       - Compile and minimize pattern
    ast <pattern>                - Show the syntax tree of a pattern
    match <pattern> <text>       - Test if text matches pattern

  GENERAL:
    delete <name>                - Delete item
    clear                        - Clear all
    exit                         - Exit
"""

TRANSFORMATIONS = {
    "rev": Automaton.reverse,
    "det": Automaton.determinize,
    "min": Automaton.minimize,
}


def _state(automaton: Automaton, text: str) -> int:
    state = int(text)
    if not 0 <= state < automaton.state_count:
        raise ValueError(f"Invalid state: {text}")
    return state


def execute(
    command: str,
    automata: Dict[str, Automaton],
    regexes: Dict[str, RegularExpression],
) -> bool:
    """Run one console command. Returns False when the console should exit."""
    parts = command.split()
    cmd = parts[0].lower()

    # Exit
    if cmd in ["exit", "quit"]:
        return False

    # Help
    elif cmd == "help":
        print(HELP)

    # Load
    elif cmd == "load":
        if len(parts) < 2:
            print("Usage: load <filename>")
            return True
        loaded_automata, loaded_regexes = load_from_file(parts[1])
        automata.update(loaded_automata)
        regexes.update(loaded_regexes)

        if loaded_automata or loaded_regexes:
            msg = []
            if loaded_automata:
                msg.append(
                    f"{len(loaded_automata)} automata: {', '.join(loaded_automata.keys())}"
                )
            if loaded_regexes:
                msg.append(
                    f"{len(loaded_regexes)} regexes: {', '.join(loaded_regexes.keys())}"
                )
            print(f"Loaded {' and '.join(msg)}")
        else:
            print("No items loaded")

    # List
    elif cmd == "list":
        if automata or regexes:
            if automata:
                print("Automata:")
                for name, aut in sorted(automata.items()):
                    kind = "deterministic" if aut.is_deterministic() else "nondeterministic"
                    print(f"  {name}: {kind}, {aut.state_count} states")
            if regexes:
                print("Regular Expressions:")
                for name, regex in sorted(regexes.items()):
                    print(f"  {name}: {regex.pattern}")
        else:
            print("Nothing loaded")

    # Create an empty automaton
    elif cmd == "new":
        if len(parts) < 3:
            print("Usage: new <name> <states>")
        else:
            automata[parts[1]] = Automaton(int(parts[2]))
            print(f"Created: {parts[1]}")

    # Add a transition
    elif cmd == "connect":
        if len(parts) < 5:
            print(f"Usage: connect <name> <s1> <s2> <symbol|{'|'.join(EPSILON_NAMES)}>")
        elif parts[1] not in automata:
            print(f"Automaton not found: {parts[1]}")
        else:
            aut = automata[parts[1]]
            aut.connect(
                _state(aut, parts[2]), _state(aut, parts[3]), parse_symbol(parts[4])
            )

    # Mark starting / final states
    elif cmd in ["starting", "final"]:
        if len(parts) < 3:
            print(f"Usage: {cmd} <name> <state> [off]")
        elif parts[1] not in automata:
            print(f"Automaton not found: {parts[1]}")
        else:
            aut = automata[parts[1]]
            value = not (len(parts) > 3 and parts[3].lower() == "off")
            if cmd == "starting":
                aut.set_starting(_state(aut, parts[2]), value)
            else:
                aut.set_final(_state(aut, parts[2]), value)

    # Show automaton info
    elif cmd == "show":
        if len(parts) < 2:
            print("Usage: show <name>")
        elif parts[1] not in automata:
            print(f"Automaton not found: {parts[1]}")
        else:
            aut = automata[parts[1]]
            print(f"\n{parts[1]}:")
            print(f"  States: {aut.state_count}")
            print(f"  Alphabet: {' '.join(sorted(aut.alphabet))}")
            print(f"  Starting: {sorted(aut.starting_states)}")
            print(f"  Final: {sorted(aut.final_states)}")
            print(f"  Transitions: {len(aut.transition_relation)}\n")

    # Print transitions
    elif cmd == "print":
        if len(parts) < 2:
            print("Usage: print <name>")
        elif parts[1] not in automata:
            print(f"Automaton not found: {parts[1]}")
        else:
            print(automata[parts[1]].dump())

    # Test word on automaton
    elif cmd == "test":
        if len(parts) < 2:
            print("Usage: test <name> <word>")
        elif parts[1] not in automata:
            print(f"Automaton not found: {parts[1]}")
        else:
            word = parts[2] if len(parts) > 2 else ""
            print("ACCEPTED" if automata[parts[1]].accepts(word) else "REJECTED")

    # Reverse / determinize / minimize
    elif cmd in TRANSFORMATIONS:
        if len(parts) < 2:
            print(f"Usage: {cmd} <name> [result]")
        elif parts[1] not in automata:
            print(f"Automaton not found: {parts[1]}")
        else:
            result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_{cmd}"
            automata[result_name] = TRANSFORMATIONS[cmd](automata[parts[1]])
            print(f"Created: {result_name}")

    # Compile regex to automaton
    elif cmd in ["regex", "build"]:
        parts = command.split(maxsplit=2)
        if len(parts) < 3:
            print(f"Usage: {cmd} <name> <pattern>")
        elif cmd == "regex":
            automata[parts[1]] = RegularExpression.compile(parts[2])
            print(f"Created automaton: {parts[1]}")
        else:
            regexes[parts[1]] = RegularExpression(parts[2])
            automata[parts[1]] = regexes[parts[1]].automaton.copy()
            print(f"Created automaton: {parts[1]}")

    # Show syntax tree
    elif cmd == "ast":
        parts = command.split(maxsplit=1)
        pattern = parts[1] if len(parts) > 1 else ""
        print(RegularExpression.parse(pattern).describe())

    # Match text against pattern (or a loaded regex)
    elif cmd == "match":
        if len(parts) < 2:
            print("Usage: match <pattern> <text>")
        else:
            regex = regexes.get(parts[1]) or RegularExpression(parts[1])
            text = parts[2] if len(parts) > 2 else ""
            print("MATCH" if regex.match(text) else "NO MATCH")

    # Delete item
    elif cmd == "delete":
        if len(parts) < 2:
            print("Usage: delete <name>")
        else:
            deleted = False
            if parts[1] in automata:
                del automata[parts[1]]
                deleted = True
            if parts[1] in regexes:
                del regexes[parts[1]]
                deleted = True
            if deleted:
                print(f"Deleted: {parts[1]}")
            else:
                print(f"Not found: {parts[1]}")

    # Clear all
    elif cmd == "clear":
        automata.clear()
        regexes.clear()
        print("Cleared all")

    else:
        print(f"Unknown command: {cmd}")

    return True


def main():
    """Simple interactive terminal for automaton and regex operations."""
    automata: Dict[str, Automaton] = {}
    regexes: Dict[str, RegularExpression] = {}

    print("Automaton & RegEx Terminal - Type 'help' for commands\n")

    while True:
        try:
            command = input("> ").strip()
            if not command:
                continue

            if not execute(command, automata, regexes):
                break

        except KeyboardInterrupt:
            print("\nUse 'exit' to quit")
        except EOFError:
            break
        except Exception as e:
            print(f"Error: {e}")

    print("Goodbye!")
