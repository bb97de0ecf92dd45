import pytest

from questscript.data.errors import GraphIntegrityError
from questscript.data.repositories import parse_script
from questscript.domain.defs import ChoiceNode, EndNode, ItemNode
from questscript.domain.graph import ScriptGraph, output_count
from tests.helpers.recording_host import edge, node, script


def _graph(raw: dict) -> ScriptGraph:
    return ScriptGraph(parse_script("graph", raw))


def test_connection_from_resolves_by_output_index() -> None:
    graph = _graph(
        script(
            node("q", "choice", options=["A", "B", "C"]),
            node("a", "end"),
            node("c", "end"),
            connections=[edge("q", "a", 0), edge("q", "c", 2)],
        )
    )

    assert graph.entry_node.id == "q"
    assert graph.connection_from("q", 0).id == "a"
    assert graph.connection_from("q", 1) is None
    assert graph.connection_from("q", 2).id == "c"


def test_output_index_beyond_node_outputs_is_rejected() -> None:
    with pytest.raises(GraphIntegrityError):
        _graph(script(node("i", "item", itemId="apple"), node("e", "end"), connections=[edge("i", "e", 1)]))


def test_end_node_has_no_outputs() -> None:
    with pytest.raises(GraphIntegrityError):
        _graph(script(node("s", "dialogue"), node("e", "end"), connections=[edge("s", "e"), edge("e", "s")]))


def test_duplicate_node_ids_are_rejected() -> None:
    with pytest.raises(GraphIntegrityError):
        _graph(script(node("a", "dialogue"), node("a", "end")))


def test_output_count_per_type() -> None:
    assert output_count(ChoiceNode(id="c", question="?", options=["x", "y", "z"])) == 3
    assert output_count(ItemNode(id="i", item_id="apple")) == 1
    assert output_count(EndNode(id="e")) == 0


def test_unknown_node_lookup_raises_key_error() -> None:
    graph = _graph(script(node("a", "dialogue")))
    with pytest.raises(KeyError):
        graph.node("missing")
    assert [n.id for n in graph.nodes()] == ["a"]
