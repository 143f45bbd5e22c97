"""
Unit tests for metric family filtering.
"""

import pytest

from service_collector.app.ingestion.filtering import (
    DropRules,
    filter_metrics,
    looks_like_regex,
    sample_name,
)


HTTP_FAMILY = """# HELP http_requests_total Total HTTP requests
# TYPE http_requests_total counter
http_requests_total{method="GET"} 100"""

CPU_FAMILY = """# HELP cpu_usage CPU usage percentage
# TYPE cpu_usage gauge
cpu_usage 45.5"""

GO_FAMILIES = """# HELP go_gc_duration_seconds GC duration
# TYPE go_gc_duration_seconds summary
go_gc_duration_seconds{quantile="0"} 0.001
# HELP go_threads Number of OS threads
# TYPE go_threads gauge
go_threads 10
# HELP go_memstats_alloc_bytes Memory allocated
# TYPE go_memstats_alloc_bytes gauge
go_memstats_alloc_bytes 1024"""


class TestFilterMetrics:
    """Test cases for filter_metrics."""

    @pytest.mark.parametrize("metrics", [
        "",
        "foo 1\n",
        HTTP_FAMILY + "\n" + CPU_FAMILY,
        HTTP_FAMILY + "\n\n# free comment\n" + CPU_FAMILY + "\n",
    ])
    def test_empty_rules_is_identity(self, metrics):
        """Test that no rules returns the input unchanged."""
        assert filter_metrics(metrics, []) == metrics

    def test_unmatched_rules_keep_text(self):
        """Test that rules matching nothing keep every line in order."""
        metrics = HTTP_FAMILY + "\n" + CPU_FAMILY + "\n"
        assert filter_metrics(metrics, ["memory_usage"]) == metrics

    def test_drop_single_metric(self):
        """Test dropping one family by exact name."""
        result = filter_metrics(HTTP_FAMILY + "\n" + CPU_FAMILY, ["cpu_usage"])
        assert result.strip() == HTTP_FAMILY

    def test_drop_multiple_metrics(self):
        """Test dropping several families by exact name."""
        metrics = "\n".join([
            HTTP_FAMILY,
            CPU_FAMILY,
            "# HELP memory_usage Memory usage",
            "# TYPE memory_usage gauge",
            "memory_usage 1024",
        ])
        result = filter_metrics(metrics, ["cpu_usage", "memory_usage"])
        assert result.strip() == HTTP_FAMILY

    def test_drop_family_removes_headers_and_all_samples(self):
        """Test that a dropped family loses HELP, TYPE and every sample, nothing else."""
        metrics = "\n".join([
            HTTP_FAMILY,
            'http_requests_total{method="POST"} 50',
            "# HELP cpu_usage CPU usage percentage",
            "# TYPE cpu_usage gauge",
            'cpu_usage{core="0"} 45.5',
            'cpu_usage{core="1"} 32.1',
            'cpu_usage{core="2"} 12.0',
        ])
        result = filter_metrics(metrics, ["cpu_usage"])
        assert result.split("\n") == [
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            'http_requests_total{method="GET"} 100',
            'http_requests_total{method="POST"} 50',
        ]

    def test_drop_with_regex_pattern(self):
        """Test that go_.* drops every go_ family and keeps the rest."""
        metrics = GO_FAMILIES + "\n" + HTTP_FAMILY
        result = filter_metrics(metrics, ["go_.*"])
        assert result.strip() == HTTP_FAMILY
        assert "go_" not in result

    def test_regex_uses_search_semantics(self):
        """Test that a regex matches anywhere in the name, not only at the start."""
        metrics = "\n".join([
            "# HELP app_go_routines Goroutines",
            "# TYPE app_go_routines gauge",
            "app_go_routines 7",
            HTTP_FAMILY,
        ])
        result = filter_metrics(metrics, ["go_.*"])
        assert "app_go_routines" not in result
        assert 'http_requests_total{method="GET"} 100' in result

    def test_drop_with_mixed_patterns(self):
        """Test a regex rule together with an exact rule."""
        metrics = "\n".join([
            "# HELP process_cpu_seconds_total CPU time",
            "# TYPE process_cpu_seconds_total counter",
            "process_cpu_seconds_total 123.45",
            "# HELP process_resident_memory_bytes Memory usage",
            "# TYPE process_resident_memory_bytes gauge",
            "process_resident_memory_bytes 2048",
            "# HELP go_threads Number of OS threads",
            "# TYPE go_threads gauge",
            "go_threads 10",
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            "http_requests_total 100",
        ])
        result = filter_metrics(metrics, ["process_.*", "go_threads"])
        assert result.strip() == "\n".join([
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            "http_requests_total 100",
        ])

    def test_invalid_regex_treated_as_exact_match(self):
        """Test that an uncompilable regex rule is applied as an exact name."""
        metrics = "\n".join([
            "# HELP test[invalid Invalid metric",
            "# TYPE test[invalid gauge",
            "test[invalid 42",
            "# HELP valid_metric Valid metric",
            "# TYPE valid_metric gauge",
            "valid_metric 100",
        ])
        result = filter_metrics(metrics, ["test[invalid"])
        assert result.strip() == "\n".join([
            "# HELP valid_metric Valid metric",
            "# TYPE valid_metric gauge",
            "valid_metric 100",
        ])

    def test_drop_samples_without_headers(self):
        """Test that a family without HELP/TYPE lines is still dropped by sample name."""
        metrics = "foo 1\nbar{a=\"b\"} 2\nbaz 3"
        assert filter_metrics(metrics, ["bar"]) == "foo 1\nbaz 3"

    def test_sample_name_rechecked_under_kept_family(self):
        """Test that samples are checked by their own name inside a kept family."""
        metrics = "\n".join([
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            "http_requests_total 1",
            "stray_metric 2",
        ])
        result = filter_metrics(metrics, ["stray_metric"])
        assert "stray_metric" not in result
        assert "http_requests_total 1" in result

    def test_comments_and_blank_lines_follow_skip_state(self):
        """Test that comments and blank lines inside a dropped family are dropped."""
        metrics = "\n".join([
            "# HELP cpu_usage CPU usage",
            "# free text about cpu",
            "",
            "cpu_usage 1",
            "# HELP keep_me Kept",
            "# free text about keep_me",
            "",
            "keep_me 2",
        ])
        result = filter_metrics(metrics, ["cpu_usage"])
        assert result.split("\n") == [
            "# HELP keep_me Kept",
            "# free text about keep_me",
            "",
            "keep_me 2",
        ]

    def test_malformed_header_passes_through(self):
        """Test that a HELP line with too few tokens keeps the previous state."""
        metrics = "\n".join([
            "# HELP cpu_usage CPU usage",
            "cpu_usage 1",
            "# TYPE ",
            "cpu_usage 2",
            "# HELP keep_me Kept",
            "keep_me 3",
        ])
        result = filter_metrics(metrics, ["cpu_usage"])
        assert result.split("\n") == [
            "# TYPE ",
            "# HELP keep_me Kept",
            "keep_me 3",
        ]

    def test_trailing_newline_preserved(self):
        """Test that the join keeps a trailing newline from the source."""
        metrics = HTTP_FAMILY + "\n" + CPU_FAMILY + "\n"
        assert filter_metrics(metrics, ["cpu_usage"]) == HTTP_FAMILY + "\n"


class TestDropRules:
    """Test cases for drop rule classification."""

    @pytest.mark.parametrize("rule,expected", [
        ("cpu_usage", False),
        ("go_.*", True),
        ("^process", True),
        ("a|b", True),
        ("test[invalid", True),
        ("namespace.metric", True),
    ])
    def test_looks_like_regex(self, rule, expected):
        """Test regex classification by metacharacters."""
        assert looks_like_regex(rule) is expected

    def test_compile_splits_rules(self):
        """Test that rules are split into exact names and patterns."""
        rules = DropRules.compile(["cpu_usage", "go_.*", "test[invalid"])
        assert rules.exact == frozenset({"cpu_usage", "test[invalid"})
        assert [p.pattern for p in rules.patterns] == ["go_.*"]

    def test_dotted_name_is_regex(self):
        """Test that a dotted name behaves as a regex and over-matches."""
        rules = DropRules.compile(["namespace.metric"])
        assert rules.matches("namespace.metric")
        assert rules.matches("namespace_metric")

    def test_empty_rules_are_falsy(self):
        """Test that no rules compile to an empty rule set."""
        assert not DropRules.compile([])


class TestSampleName:
    """Test cases for sample_name."""

    @pytest.mark.parametrize("line,expected", [
        ("foo 1", "foo"),
        ('foo{a="b c"} 1', "foo"),
        ("foo", "foo"),
        ("foo{a=\"1\"}", "foo"),
    ])
    def test_sample_name(self, line, expected):
        """Test extracting the family name of a sample line."""
        assert sample_name(line) == expected
