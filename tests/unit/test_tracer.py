"""Unit tests for layout tracing."""

from mindlayout.tracer import (
    GENERAL,
    PARENT_CHILD,
    SIBLINGS,
    LayoutStage,
    LayoutTrace,
    Resolution,
)


class TestResolution:
    def test_str(self):
        resolution = Resolution(
            kind=SIBLINGS,
            first=5,
            second=6,
            phase="level",
            iteration=0,
            shifts={5: -20.0, 6: 20.0},
        )
        assert str(resolution) == "[level#0] siblings (5, 6) -> 5:-20.0, 6:+20.0"


class TestLayoutStage:
    def test_long_values_truncated(self):
        stage = LayoutStage(name="placement", data={"ids": list(range(100))})
        text = str(stage)
        assert text.startswith("=== Stage: placement ===")
        assert text.endswith("...")


class TestLayoutTrace:
    def _trace(self):
        trace = LayoutTrace()
        trace.record(Resolution(GENERAL, 6, 7, "level", 0, {6: -40.0, 7: 40.0}))
        trace.record(Resolution(SIBLINGS, 7, 8, "level", 0, {7: -20.0, 8: 30.0}))
        trace.record(Resolution(PARENT_CHILD, 1, 2, "global", 0, {2: 120.0}))
        return trace

    def test_empty_trace_converged(self):
        trace = LayoutTrace()
        assert trace.converged
        assert trace.count_by_kind() == {}

    def test_residual_overlaps_mean_not_converged(self):
        trace = LayoutTrace(residual_overlaps=[(2, 3)])
        assert not trace.converged

    def test_resolutions_for(self):
        trace = self._trace()
        assert [r.kind for r in trace.resolutions_for(7)] == [GENERAL, SIBLINGS]
        assert trace.resolutions_for(42) == []

    def test_count_by_kind(self):
        assert self._trace().count_by_kind() == {
            GENERAL: 1,
            SIBLINGS: 1,
            PARENT_CHILD: 1,
        }

    def test_add_stage(self):
        trace = LayoutTrace()
        trace.add_stage("validation", residual=0)
        assert trace.stages[0].name == "validation"
        assert trace.stages[0].data == {"residual": 0}

    def test_summary(self):
        trace = self._trace()
        trace.add_stage("placement", nodes=8)
        trace.level_iterations = {2: 4, 1: 1}
        trace.global_iterations = 1
        trace.residual_overlaps = [(3, 4)]

        summary = trace.summary()

        assert "stages: placement" in summary
        assert "resolutions: 3" in summary
        assert "level iterations: L1=1, L2=4" in summary
        assert "global iterations: 1" in summary
        assert "residual overlaps: 1" in summary
        assert "3 <-> 4" in summary

    def test_summary_without_overlaps(self):
        assert "residual overlaps: none" in LayoutTrace().summary()
