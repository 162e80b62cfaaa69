import builtins

import pytest

import cli
from automaton import Automaton
from regular_expression import RegexSyntaxError


@pytest.fixture
def session():
    automata = {}
    regexes = {}

    def run(command):
        return cli.execute(command, automata, regexes)

    run.automata = automata
    run.regexes = regexes
    return run


def test_build_automaton_incrementally(session, capsys):
    session("new m 3")
    session("connect m 0 1 a")
    session("connect m 1 2 eps")
    session("connect m 2 2 b")
    session("starting m 0")
    session("final m 2")

    automaton = session.automata["m"]
    assert automaton.state_count == 3
    assert automaton.starting_states == frozenset({0})
    assert automaton.final_states == frozenset({2})

    capsys.readouterr()
    session("test m abb")
    session("test m b")
    assert capsys.readouterr().out.split() == ["ACCEPTED", "REJECTED"]


def test_unmark_state(session):
    session("new m 2")
    session("final m 1")
    session("final m 1 off")
    assert session.automata["m"].final_states == frozenset()


def test_print_dumps_transitions(session, capsys):
    session("new m 2")
    session("connect m 0 1 x")
    session("starting m 0")
    session("final m 1")
    capsys.readouterr()

    session("print m")
    assert capsys.readouterr().out == "*0  --x->  1*\n"


def test_transformations_store_results(session, capsys):
    session("regex r (a|b)*abb")
    session("rev r")
    session("det r")
    session("min r smallest")

    assert set(session.automata) == {"r", "r_rev", "r_det", "smallest"}
    assert session.automata["smallest"].state_count == 4
    assert session.automata["r_det"].is_deterministic()
    assert "Created: smallest" in capsys.readouterr().out


def test_build_and_match(session, capsys):
    session("build num [0-9]+")
    capsys.readouterr()

    session("match num 123")
    session("match num 12a")
    session("match a(b|c)+d abbcd")
    assert capsys.readouterr().out.split("\n")[:3] == ["MATCH", "NO MATCH", "MATCH"]
    assert session.automata["num"] == session.regexes["num"].automaton
    assert session.automata["num"] is not session.regexes["num"].automaton


def test_pattern_with_spaces(session):
    session("build greeting hello world")
    assert session.regexes["greeting"].match("hello world")


def test_ast(session, capsys):
    session("ast a?")
    assert capsys.readouterr().out == 'OptionalNode {\n    CharacterNode { "a" }\n}\n'


def test_list_show_delete_clear(session, capsys):
    session("build one a")
    session("new empty 2")
    capsys.readouterr()

    session("list")
    out = capsys.readouterr().out
    assert "one: deterministic, 2 states" in out
    assert "empty: deterministic, 2 states" in out
    assert "one: a" in out

    session("show one")
    out = capsys.readouterr().out
    assert "States: 2" in out
    assert "Alphabet: a" in out

    session("delete one")
    assert "one" not in session.automata and "one" not in session.regexes
    session("delete one")
    assert "Not found: one" in capsys.readouterr().out

    session("clear")
    assert session.automata == {} and session.regexes == {}


def test_missing_items_and_usage(session, capsys):
    session("print nowhere")
    session("min")
    session("frobnicate")
    out = capsys.readouterr().out
    assert "Automaton not found: nowhere" in out
    assert "Usage: min <name> [result]" in out
    assert "Unknown command: frobnicate" in out


def test_load(session, tmp_path, capsys):
    path = tmp_path / "items.txt"
    path.write_text("m:\nstart: 0\naccept: 1\n0 a 1\n\nr:\nregex: b+\n", encoding="utf-8")

    session(f"load {path}")

    assert "Loaded 1 automata: m and 1 regexes: r" in capsys.readouterr().out
    assert isinstance(session.automata["m"], Automaton)
    assert session.regexes["r"].match("bbb")


def test_errors_propagate_from_execute(session):
    with pytest.raises(RegexSyntaxError):
        session("regex broken (a")
    session("new m 2")
    with pytest.raises(ValueError):
        session("connect m 0 5 a")


def test_exit(session):
    assert session("exit") is False
    assert session("quit") is False
    assert session("help") is True


def test_main_reports_errors_and_exits(monkeypatch, capsys):
    commands = iter(["", "build r (a", "build r a+", "match r aaa", "exit"])
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(commands))

    cli.main()

    out = capsys.readouterr().out
    assert "Error: unmatched parentheses at position 0" in out
    assert "MATCH" in out
    assert out.rstrip().endswith("Goodbye!")


def test_main_stops_at_end_of_input(monkeypatch, capsys):
    def no_input(prompt=""):
        raise EOFError

    monkeypatch.setattr(builtins, "input", no_input)

    cli.main()

    assert "Goodbye!" in capsys.readouterr().out
