import pytest

from circuit_check.dependency_graph import build_dependency_graph
from circuit_check.difficulty import ScoreDistribution, hardest_chain, score_difficulty
from circuit_check.exceptions import CyclicDependencyError
from circuit_check.models import Instruction

I = Instruction


def _graph(table):
    return build_dependency_graph({I(k): {I(v) for v in refs} for k, refs in table.items()})


def test_diamond_scores() -> None:
    report = score_difficulty(_graph({"a": [], "b": ["a"], "c": ["a"], "d": ["b", "c"]}))

    assert report.score(I("a")) == 0
    assert report.score(I("b")) == 1
    assert report.score(I("c")) == 1
    assert report.score(I("d")) == 2
    assert report.records[I("d")].predecessor in {I("b"), I("c")}
    assert report.hardest == I("d")
    assert report.chain[0] == I("a") and report.chain[-1] == I("d")


def test_scores_follow_longest_predecessor_chain() -> None:
    graph = _graph({
        "base1": [],
        "base2": [],
        "mid": ["base1"],
        "deep": ["mid", "base2"],
        "deeper": ["deep", "base1"],
        "side": ["base2"],
        "top": ["side", "deeper"],
    })

    report = score_difficulty(graph)

    for node in graph.nodes:
        preds = graph.predecessors(node)
        record = report.records[node]
        if not preds:
            assert record.score == 0
            assert record.predecessor is None
        else:
            assert record.score == 1 + max(report.score(p) for p in preds)
            assert report.score(record.predecessor) == record.score - 1

    assert report.max_score == 4
    assert report.chain == [I("base1"), I("mid"), I("deep"), I("deeper"), I("top")]
    assert len(report.chain) == report.max_score + 1


def test_backward_walk_drops_one_per_step() -> None:
    report = score_difficulty(_graph({"a": [], "b": ["a"], "c": ["b"], "d": ["c", "a"]}))

    chain = hardest_chain(report.records, report.hardest)

    assert [report.score(node) for node in chain] == list(range(report.max_score + 1))


def test_tie_records_smallest_opcode() -> None:
    report = score_difficulty(_graph({"x": [], "y": [], "z": ["y", "x"]}))

    assert report.records[I("z")].predecessor == I("x")


def test_cyclic_graph_fails_without_partial_result() -> None:
    with pytest.raises(CyclicDependencyError):
        score_difficulty(_graph({"a": ["b"], "b": ["a"], "c": []}))


def test_empty_graph_gives_empty_report() -> None:
    report = score_difficulty(_graph({}))

    assert report.hardest is None
    assert report.chain == []
    assert report.max_score == 0
    assert report.distribution == ScoreDistribution()


def test_distribution_summary() -> None:
    report = score_difficulty(_graph({"a": [], "b": [], "c": ["a"], "d": ["c"]}))

    dist = report.distribution
    assert dist.count == 4
    assert dist.minimum == 0
    assert dist.maximum == 2
    assert dist.mean == pytest.approx(0.75)
    assert dist.median == pytest.approx(0.5)
    assert dist.histogram == {0: 2, 1: 1, 2: 1}
    assert dist.to_dict()["histogram"] == {"0": 2, "1": 1, "2": 1}
