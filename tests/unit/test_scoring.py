"""Unit tests for app/detection/scoring.py and app/detection/tips.py."""

from __future__ import annotations

import pytest

from app.detection.errors import ProviderError
from app.detection.scoring import (
    NO_MARKERS_DETAIL,
    describe_ai_score,
    detail_from_provider,
    details_from_results,
    overall_score,
    provider_display_name,
    verdict_for_score,
)
from app.detection.tips import MANUAL_TIPS, tips_for
from app.models.scan import ApiDetail, ContentType


class TestProviderDisplayName:
    def test_first_letter_upper_cased(self) -> None:
        assert provider_display_name("winstonai") == "Winstonai"
        assert provider_display_name("originalityai") == "Originalityai"

    def test_empty(self) -> None:
        assert provider_display_name("") == ""


class TestDescribeAiScore:
    def test_above_threshold(self) -> None:
        assert describe_ai_score(0.87) == ["AI markers detected with confidence 0.87"]

    def test_threshold_is_exclusive(self) -> None:
        assert describe_ai_score(0.4) == [NO_MARKERS_DETAIL]

    def test_missing_score(self) -> None:
        assert describe_ai_score(None) == [NO_MARKERS_DETAIL]


class TestDetailsFromResults:
    def test_successful_providers_kept(self) -> None:
        analysis = details_from_results(
            {
                "winstonai": {"status": "success", "ai_score": 0.9},
                "originalityai": {"status": "success", "ai_score": 0.1},
            }
        )
        assert [item.provider for item in analysis] == ["Winstonai", "Originalityai"]
        assert analysis[0].score == pytest.approx(90.0)
        assert analysis[0].details == ["AI markers detected with confidence 0.90"]
        assert analysis[1].score == pytest.approx(10.0)
        assert analysis[1].details == [NO_MARKERS_DETAIL]

    def test_failed_providers_dropped(self) -> None:
        analysis = details_from_results(
            {
                "winstonai": {"status": "fail", "error": {"message": "quota"}},
                "illuminarty": {"status": "success", "ai_score": 0.5},
            }
        )
        assert [item.provider for item in analysis] == ["Illuminarty"]

    def test_all_failed_raises(self) -> None:
        with pytest.raises(ProviderError) as exc_info:
            details_from_results({"winstonai": {"status": "fail"}})
        assert exc_info.value.message == "None of the AI detection providers were successful."

    def test_empty_raises(self) -> None:
        with pytest.raises(ProviderError):
            details_from_results({})

    def test_missing_ai_score_counts_as_zero(self) -> None:
        detail = detail_from_provider("Sensity AI", {"status": "success"})
        assert detail.score == 0.0
        assert detail.details == [NO_MARKERS_DETAIL]


class TestOverallScore:
    def test_mean_rounded(self) -> None:
        analysis = [ApiDetail("A", 90.0), ApiDetail("B", 10.0), ApiDetail("C", 33.333)]
        assert overall_score(analysis) == pytest.approx(44.44)

    def test_empty_is_zero(self) -> None:
        assert overall_score([]) == 0.0


class TestVerdict:
    @pytest.mark.parametrize(
        ("score", "verdict"),
        [
            (0.0, "Likely Human-Generated"),
            (29.99, "Likely Human-Generated"),
            (30.0, "Potentially AI-Assisted"),
            (69.99, "Potentially AI-Assisted"),
            (70.0, "Likely AI-Generated"),
            (100.0, "Likely AI-Generated"),
        ],
    )
    def test_bands(self, score: float, verdict: str) -> None:
        assert verdict_for_score(score) == verdict


class TestTips:
    @pytest.mark.parametrize("content_type", list(ContentType))
    def test_four_tips_per_type(self, content_type: ContentType) -> None:
        assert len(tips_for(content_type)) == 4

    def test_returns_copy(self) -> None:
        tips = tips_for(ContentType.IMAGE)
        tips.append("mutated")
        assert len(MANUAL_TIPS[ContentType.IMAGE]) == 4
        assert "mutated" not in tips_for(ContentType.IMAGE)
