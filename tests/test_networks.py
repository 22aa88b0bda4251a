"""Tests for the network topology generators."""
import numpy as np
import pytest

from kuramoto_field.errors import ConfigurationError
from kuramoto_field.networks import (
    TOPOLOGIES,
    create_all_to_all,
    create_network,
    create_random,
    create_ring,
    create_scale_free,
    create_small_world,
    network_stats,
)


def _assert_simple_graph(net):
    A = net.adjacency
    np.testing.assert_array_equal(A, A.T)
    assert np.all(np.diag(A) == 0.0)
    assert set(np.unique(A)).issubset({0.0, 1.0})
    assert len(net.edges) == int(A.sum()) // 2
    assert all(i < j for i, j in net.edges)


class TestAllToAll:
    def test_structure(self):
        net = create_all_to_all(12)
        _assert_simple_graph(net)
        assert int(np.count_nonzero(net.adjacency)) == 12 * 11
        assert len(net.edges) == 12 * 11 // 2
        assert net.topology == "all-to-all"

    def test_single_node(self):
        net = create_all_to_all(1)
        assert net.adjacency.shape == (1, 1)
        assert net.edges == []


class TestRandom:
    def test_symmetric(self):
        net = create_random(40, 0.3, rng=5)
        _assert_simple_graph(net)
        assert net.params == {"p": 0.3}

    def test_degenerate_probabilities(self):
        assert create_random(15, 0.0, rng=1).edges == []
        assert len(create_random(15, 1.0, rng=1).edges) == 15 * 14 // 2
        # out-of-range p is not validated
        assert create_random(10, -0.5, rng=1).edges == []
        assert len(create_random(10, 2.0, rng=1).edges) == 45

    def test_seeded_reproducible(self):
        a = create_random(25, 0.2, rng=11)
        b = create_random(25, 0.2, rng=11)
        np.testing.assert_array_equal(a.adjacency, b.adjacency)


class TestSmallWorld:
    def test_no_rewiring_is_ring_lattice(self):
        net = create_small_world(30, k=4, beta=0.0, rng=0)
        _assert_simple_graph(net)
        np.testing.assert_array_equal(net.adjacency, create_ring(30, 2).adjacency)

    @pytest.mark.parametrize("beta", [0.1, 0.5, 1.0])
    def test_rewiring_preserves_edge_count(self, beta):
        net = create_small_world(40, k=4, beta=beta, rng=3)
        _assert_simple_graph(net)
        assert len(net.edges) == 40 * 4 // 2

    def test_rewiring_changes_endpoints(self):
        lattice = create_small_world(40, k=4, beta=0.0, rng=3)
        rewired = create_small_world(40, k=4, beta=0.5, rng=3)
        assert not np.array_equal(lattice.adjacency, rewired.adjacency)

    def test_odd_k_drops_an_offset(self):
        net = create_small_world(20, k=3, beta=0.0, rng=0)
        assert net.stats()["degrees"] == [2] * 20

    def test_k_at_least_n_is_dense(self):
        net = create_small_world(6, k=10, beta=0.0, rng=0)
        _assert_simple_graph(net)
        assert len(net.edges) == 15


class TestScaleFree:
    def test_edge_count(self):
        N, m = 30, 2
        net = create_scale_free(N, m, rng=4)
        _assert_simple_graph(net)
        m0 = m + 1
        assert len(net.edges) == m0 * (m0 - 1) // 2 + (N - m0) * m

    def test_seed_clique_complete(self):
        net = create_scale_free(20, 3, rng=2)
        seed = net.adjacency[:4, :4]
        assert int(seed.sum()) == 4 * 3

    def test_every_late_node_attaches_m_times(self):
        N, m = 25, 3
        A = create_scale_free(N, m, rng=8).adjacency
        for i in range(m + 1, N):
            assert int(A[i, :i].sum()) == m

    def test_small_n(self):
        net = create_scale_free(2, 4, rng=0)
        _assert_simple_graph(net)
        assert net.edges == [(0, 1)]


class TestRing:
    def test_degree(self):
        net = create_ring(20, 3)
        _assert_simple_graph(net)
        assert net.stats()["degrees"] == [6] * 20

    def test_wraparound_small_n(self):
        net = create_ring(5, 3)
        _assert_simple_graph(net)
        assert len(net.edges) == 10


class TestDispatchAndStats:
    def test_dispatch_defaults(self):
        assert set(TOPOLOGIES) == {"all-to-all", "random", "small-world", "scale-free", "ring"}
        net = create_network("small-world", 20, rng=1)
        assert net.params == {"k": 4, "beta": 0.1}
        assert create_network("ring", 10).params == {"k": 2}
        assert create_network("scale-free", 10, rng=1, m=3).params == {"m": 3}

    def test_unknown_topology(self):
        with pytest.raises(ConfigurationError):
            create_network("lattice", 10)

    def test_invalid_n(self):
        with pytest.raises(ConfigurationError):
            create_all_to_all(0)
        with pytest.raises(ConfigurationError):
            create_ring(-3)

    def test_stats(self):
        s = network_stats(create_ring(10, 1).adjacency)
        assert s["avg_degree"] == 2.0
        assert s["min_degree"] == 2 and s["max_degree"] == 2
        assert network_stats(None) == {"avg_degree": 0.0, "max_degree": 0, "min_degree": 0, "degrees": []}

    def test_descriptor_is_plain(self):
        d = create_ring(8, 2).to_dict()
        assert d == {
            "topology": "ring",
            "params": {"k": 2},
            "N": 8,
            "num_edges": 16,
            "avg_degree": 4.0,
            "max_degree": 4,
            "min_degree": 4,
        }
