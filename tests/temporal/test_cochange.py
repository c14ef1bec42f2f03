"""Tests for co-change weighting and the pure analysis pipeline."""

import pytest

from coupling_insight.config import FilterConfig
from coupling_insight.temporal.cache import edges_from_graph, merge_edges
from coupling_insight.temporal.cochange import (
    accumulate_edges,
    analyze_cochanges,
    commit_multiplier,
    commit_type,
    compute_cochange_edges,
    compute_file_frequencies,
    scan_cochanges,
)
from coupling_insight.temporal.models import CoChangeGraph, Commit, FilePair

SHA1 = "1" * 40
SHA2 = "2" * 40
SHA3 = "3" * 40


def commit(files, subject="feat: change", sha=SHA1):
    return Commit(sha=sha, subject=subject, files=list(files))


class TestFilePair:
    """Tests for the canonical unordered pair."""

    def test_canonical_order(self):
        pair = FilePair("z.ts", "a.ts")
        assert pair.first == "a.ts"
        assert pair.second == "z.ts"
        assert pair == FilePair("a.ts", "z.ts")
        assert hash(pair) == hash(FilePair("a.ts", "z.ts"))

    def test_self_pair_rejected(self):
        with pytest.raises(ValueError):
            FilePair("a.ts", "a.ts")

    def test_other(self):
        pair = FilePair("a.ts", "b.ts")
        assert pair.other("a.ts") == "b.ts"
        assert pair.other("b.ts") == "a.ts"
        with pytest.raises(KeyError):
            pair.other("c.ts")


class TestComputeCochangeEdges:
    """Tests for graduated 1/(n-1) weighting."""

    def test_three_file_commit(self):
        edges = compute_cochange_edges([commit(["a.ts", "b.ts", "c.ts"])])
        assert len(edges) == 3
        for edge in edges:
            assert edge.weight == pytest.approx(0.5)
            assert edge.commit_count == 1

    def test_repeated_pair_accumulates(self):
        edges = compute_cochange_edges(
            [commit(["x.ts", "y.ts"]), commit(["y.ts", "x.ts"], sha=SHA2)]
        )
        assert len(edges) == 1
        assert edges[0].files == FilePair("x.ts", "y.ts")
        assert edges[0].weight == pytest.approx(2.0)
        assert edges[0].commit_count == 2

    def test_edges_are_canonical_and_sorted(self):
        edges = compute_cochange_edges([commit(["z.ts", "m.ts", "a.ts"])])
        assert [(e.files.first, e.files.second) for e in edges] == [
            ("a.ts", "m.ts"),
            ("a.ts", "z.ts"),
            ("m.ts", "z.ts"),
        ]

    def test_single_and_empty_commits_add_nothing(self):
        assert compute_cochange_edges([commit(["a.ts"]), commit([], sha=SHA2)]) == []

    def test_duplicate_files_in_commit_counted_once(self):
        edges = compute_cochange_edges([commit(["a.ts", "b.ts", "a.ts"])])
        assert len(edges) == 1
        assert edges[0].weight == pytest.approx(1.0)

    def test_weights_positive_and_counts_at_least_one(self):
        commits = [
            commit(["a.ts", "b.ts", "c.ts", "d.ts"]),
            commit(["a.ts", "b.ts"], sha=SHA2),
            commit(["c.ts"], sha=SHA3),
        ]
        for edge in compute_cochange_edges(commits):
            assert edge.weight > 0
            assert edge.commit_count >= 1

    def test_additive_over_commit_batches(self):
        """Edges of A then B merged equal edges of A+B computed at once."""
        batch_a = [commit(["a.ts", "b.ts", "c.ts"]), commit(["a.ts", "b.ts"], sha=SHA2)]
        batch_b = [commit(["b.ts", "c.ts", "d.ts"], sha=SHA3)]

        combined = edges_from_graph(
            CoChangeGraph(compute_cochange_edges(batch_a + batch_b), 3, 0)
        )
        stored = edges_from_graph(CoChangeGraph(compute_cochange_edges(batch_a), 2, 0))
        merged = merge_edges(stored, CoChangeGraph(compute_cochange_edges(batch_b), 1, 0))

        assert set(merged) == set(combined)
        for pair, stats in combined.items():
            assert merged[pair].weight == pytest.approx(stats.weight)
            assert merged[pair].count == stats.count


class TestCommitTypeMultipliers:
    """Tests for conventional-commit type weighting."""

    @pytest.mark.parametrize(
        "subject,expected",
        [
            ("feat: add", "feat"),
            ("feat(ui): add", "feat"),
            ("Fix!: breaking", "fix"),
            ("refactor(core)!: rename", "refactor"),
            ("update readme", None),
            ("", None),
        ],
    )
    def test_commit_type(self, subject, expected):
        assert commit_type(subject) == expected

    def test_multiplier_lookup(self):
        multipliers = {"feat": 2.0, "docs": 0.5}
        assert commit_multiplier("feat(api): x", multipliers) == 2.0
        assert commit_multiplier("docs: y", multipliers) == 0.5
        assert commit_multiplier("fix: z", multipliers) == 1.0
        assert commit_multiplier("no prefix", multipliers) == 1.0
        assert commit_multiplier("feat: x", None) == 1.0

    def test_multiplier_scales_weight(self):
        stats = accumulate_edges(
            [commit(["a.ts", "b.ts"], subject="feat: x")], type_multipliers={"feat": 2.0}
        )
        assert stats[FilePair("a.ts", "b.ts")].weight == pytest.approx(2.0)

    def test_zero_multiplier_adds_no_edges(self):
        stats = accumulate_edges(
            [commit(["a.ts", "b.ts"], subject="docs: x")], type_multipliers={"docs": 0.0}
        )
        assert stats == {}


class TestComputeFileFrequencies:
    def test_counts_commits_per_file(self):
        freqs = compute_file_frequencies(
            [commit(["a.ts", "b.ts"]), commit(["a.ts", "a.ts"], sha=SHA2), commit([], sha=SHA3)]
        )
        assert freqs == {"a.ts": 2, "b.ts": 1}


class TestAnalyzeCochanges:
    """Tests for the parse -> filter -> weight pipeline."""

    def test_empty_log(self):
        graph = analyze_cochanges("")
        assert graph.edges == []
        assert graph.total_commits_analyzed == 0
        assert graph.total_commits_filtered == 0
        assert graph.last_sha is None

    def test_totals_and_last_sha(self, make_log):
        big = [f"f{i}.ts" for i in range(60)]
        raw = make_log(
            (SHA1, "chore: bump", ["a.ts", "b.ts"]),
            (SHA2, "feat: big", big),
            (SHA3, "feat: pair", ["a.ts", "b.ts"]),
        )
        graph = analyze_cochanges(raw, FilterConfig())
        assert graph.total_commits_analyzed == 1
        assert graph.total_commits_filtered == 2
        assert graph.last_sha == SHA1
        assert len(graph.edges) == 1
        assert graph.edges[0].weight == pytest.approx(1.0)

    def test_excluded_paths_do_not_pair(self, make_log):
        raw = make_log((SHA1, "feat: deps", ["package-lock.json", "src/a.ts"]))
        graph = analyze_cochanges(raw, FilterConfig())
        assert graph.edges == []
        assert graph.total_commits_analyzed == 1
        assert graph.file_frequencies == {"src/a.ts": 1}

    def test_exclusion_changes_denominator(self, make_log):
        raw = make_log((SHA1, "feat: x", ["src/a.ts", "src/b.ts", "src/types.d.ts"]))
        graph = analyze_cochanges(raw, FilterConfig())
        assert len(graph.edges) == 1
        assert graph.edges[0].weight == pytest.approx(1.0)

    def test_zero_multiplier_commit_still_analyzed(self, make_log):
        raw = make_log((SHA1, "docs: x", ["a.md", "b.md"]))
        graph = analyze_cochanges(raw, FilterConfig(type_multipliers={"docs": 0}))
        assert graph.edges == []
        assert graph.total_commits_analyzed == 1
        assert graph.file_frequencies == {"a.md": 1, "b.md": 1}

    def test_deterministic(self, make_log):
        raw = make_log(
            (SHA1, "feat: x", ["c.ts", "a.ts", "b.ts"]),
            (SHA2, "fix: y", ["b.ts", "a.ts"]),
        )
        assert analyze_cochanges(raw) == analyze_cochanges(raw)


class TestScanCochanges:
    """Tests for scan_cochanges with an injected extractor."""

    def test_passes_range_to_extractor(self, fake_extractor, make_log):
        raw = make_log((SHA2, "feat: x", ["a.ts", "b.ts"]))
        extractor = fake_extractor(head=SHA2, logs={SHA1: raw})
        graph = scan_cochanges("/repo", since=SHA1, until=SHA2, extractor=extractor)
        assert extractor.calls == [{"since": SHA1, "until": SHA2, "numstat": False}]
        assert len(graph.edges) == 1

    def test_real_repository(self, git_repo):
        git_repo.commit("feat: first", {"a.py": "a\n", "b.py": "b\n", "c.py": "c\n"})
        git_repo.commit("fix: second", {"a.py": "a2\n", "b.py": "b2\n"})

        graph = scan_cochanges(git_repo.path)
        edges = graph.edge_map()
        assert graph.total_commits_analyzed == 2
        assert edges[FilePair("a.py", "b.py")].weight == pytest.approx(1.5)
        assert edges[FilePair("a.py", "b.py")].commit_count == 2
        assert edges[FilePair("a.py", "c.py")].weight == pytest.approx(0.5)
