import pytest

from atomizer.core import (
    Atom,
    Context,
    ContextRef,
    CycleDetectedError,
    DimensionMismatchError,
    EmbeddingAggregator,
    InMemoryAtomizerRepository,
    NotFoundError,
    StoreLookupError,
)


def _context(context_id, *child_ids):
    return Context(id=context_id, children=[ContextRef(id=c) for c in child_ids])


def _atom(atom_id, embedding):
    return Atom(id=atom_id, type="p", content=atom_id, embedding=embedding)


@pytest.fixture
def repo():
    return InMemoryAtomizerRepository()


def test_mean_of_self_and_two_leaf_atoms(repo):
    repo.insert_contexts([_context("C", "a1", "a2")])
    repo.insert_atoms([_atom("C", [1.0, 2.0, 3.0]), _atom("a1", [3.0, 4.0, 5.0]), _atom("a2", [5.0, 6.0, 9.0])])

    result = EmbeddingAggregator(repo).aggregate("C")

    assert result == pytest.approx([3.0, 4.0, 17.0 / 3])
    assert repo.get_context("C").embedding == pytest.approx([3.0, 4.0, 17.0 / 3])


def test_child_context_counts_as_one_vector(repo):
    # R -> [C, x]; C -> [c1, c2, c3]
    repo.insert_contexts([_context("R", "C", "x"), _context("C", "c1", "c2", "c3")])
    repo.insert_atoms(
        [
            _atom("R", [0.0, 0.0]),
            _atom("C", [2.0, 2.0]),
            _atom("c1", [2.0, 2.0]),
            _atom("c2", [6.0, 6.0]),
            _atom("c3", [6.0, 6.0]),
            _atom("x", [6.0, 6.0]),
        ]
    )

    result = EmbeddingAggregator(repo).aggregate("R")

    assert repo.get_context("C").embedding == pytest.approx([4.0, 4.0])
    assert result == pytest.approx([10.0 / 3, 10.0 / 3])
    assert repo.get_context("R").embedding == pytest.approx(result)


def test_missing_context(repo):
    with pytest.raises(NotFoundError, match="Context not found: nope"):
        EmbeddingAggregator(repo).aggregate("nope")


def test_missing_own_embedding(repo):
    repo.insert_contexts([_context("C", "a1")])
    repo.insert_atoms([Atom(id="C", type="h1", content="C"), _atom("a1", [1.0])])
    with pytest.raises(NotFoundError, match="Atom \\(metadata\\) not found for context: C"):
        EmbeddingAggregator(repo).aggregate("C")


def test_missing_child_atom(repo):
    repo.insert_contexts([_context("C", "ghost")])
    repo.insert_atoms([_atom("C", [1.0])])
    with pytest.raises(NotFoundError, match="Atom not found for child id: ghost"):
        EmbeddingAggregator(repo).aggregate("C")
    assert repo.get_context("C").embedding is None


def test_dimension_mismatch_persists_nothing(repo):
    repo.insert_contexts([_context("C", "a1", "a2")])
    repo.insert_atoms([_atom("C", [1.0, 1.0]), _atom("a1", [1.0, 1.0]), _atom("a2", [1.0, 1.0, 1.0])])

    with pytest.raises(DimensionMismatchError):
        EmbeddingAggregator(repo).aggregate("C")
    assert repo.get_context("C").embedding is None


def test_cycle_is_detected(repo):
    repo.insert_contexts([_context("A", "B"), _context("B", "A")])
    repo.insert_atoms([_atom("A", [1.0]), _atom("B", [1.0])])

    with pytest.raises(CycleDetectedError):
        EmbeddingAggregator(repo).aggregate("A")
    assert repo.get_context("A").embedding is None
    assert repo.get_context("B").embedding is None


def test_shared_subtree_is_not_a_cycle(repo):
    repo.insert_contexts([_context("A", "B", "C"), _context("B", "D"), _context("C", "D"), _context("D", "x")])
    repo.insert_atoms([_atom(i, [1.0]) for i in "ABCDx"])

    assert EmbeddingAggregator(repo).aggregate("A") == pytest.approx([1.0])


def test_every_call_refetches(repo):
    repo.insert_contexts([_context("C", "a1")])
    repo.insert_atoms([_atom("C", [0.0]), _atom("a1", [2.0])])
    aggregator = EmbeddingAggregator(repo)

    assert aggregator.aggregate("C") == pytest.approx([1.0])
    repo.update_column("atoms", "a1", "embedding", [4.0])
    assert aggregator.aggregate("C") == pytest.approx([2.0])


def test_aggregate_batch_isolates_failures(repo):
    repo.insert_contexts([_context("C", "a1")])
    repo.insert_atoms([_atom("C", [0.0]), _atom("a1", [2.0])])

    results = EmbeddingAggregator(repo).aggregate_batch(["C", "missing"])

    assert results[0] == {"id": "C", "embedding": pytest.approx([1.0])}
    assert results[1] == {"id": "missing", "error": "Context not found: missing"}


def test_store_failures_are_wrapped(repo):
    repo.insert_contexts([_context("C", "a1")])
    repo.insert_atoms([_atom("C", [0.0]), _atom("a1", [2.0])])

    class ReadFailure(InMemoryAtomizerRepository):
        def get_by_id(self, table, row_id):
            raise ConnectionError("store down")

    with pytest.raises(StoreLookupError) as excinfo:
        EmbeddingAggregator(ReadFailure()).aggregate("C")
    assert isinstance(excinfo.value.__cause__, ConnectionError)

    def failing_update(table, row_id, column, value):
        raise ConnectionError("write refused")

    repo.update_column = failing_update
    with pytest.raises(StoreLookupError, match="Failed to store embedding for context C"):
        EmbeddingAggregator(repo).aggregate("C")
