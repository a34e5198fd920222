"""
Tests for the retrying generation client.
"""

import pytest

from genass.core.error_handler import APIError, GenerationError, GenerationCancelled
from genass.generation.cancellation import CancellationToken
from genass.generation.generation_client import (
    GenerationClient,
    backoff_delay,
    CHARACTER_CONSISTENCY_CLAUSE,
    QUALITY_MODE_CLAUSE,
)
from genass.generation.models import GenerationOptions


class TestBackoffDelay:
    """
    Tests for the backoff schedule.
    """

    def test_rate_limited_schedule(self):
        assert [backoff_delay(n, True) for n in (1, 2, 3, 4)] == [5, 10, 20, 40]

    def test_other_error_schedule(self):
        assert [backoff_delay(n, False) for n in (1, 2, 3)] == [2, 4, 8]

    def test_delay_is_capped(self):
        assert backoff_delay(5, True) == 60
        assert backoff_delay(10, False) == 60


class TestGenerationClient:
    """
    Tests for GenerationClient.generate.
    """

    @pytest.mark.asyncio
    async def test_returns_image_on_first_success(self, fake_adapter, recording_sleep, make_need, options):
        adapter = fake_adapter([b"image"])
        client = GenerationClient(adapter, sleep=recording_sleep)

        image = await client.generate("prompt", make_need(), options)

        assert image.data == b"image"
        assert len(adapter.calls) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self, fake_adapter, recording_sleep, make_need, options):
        adapter = fake_adapter([
            APIError("Too Many Requests", status_code=429),
            APIError("Too Many Requests", status_code=429),
            b"image",
        ])
        client = GenerationClient(adapter, sleep=recording_sleep)

        image = await client.generate("prompt", make_need(), options)

        assert image.data == b"image"
        assert len(adapter.calls) == 3
        assert recording_sleep.delays == [5, 10]

    @pytest.mark.asyncio
    async def test_other_errors_use_shorter_backoff(self, fake_adapter, recording_sleep, make_need, options):
        adapter = fake_adapter([ConnectionError("reset"), b"image"])
        client = GenerationClient(adapter, sleep=recording_sleep)

        await client.generate("prompt", make_need(), options)

        assert recording_sleep.delays == [2]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_generation_error(self, fake_adapter, recording_sleep, make_need, options):
        last = APIError("Server error", status_code=500)
        adapter = fake_adapter([last])
        client = GenerationClient(adapter, sleep=recording_sleep)

        with pytest.raises(GenerationError) as exc_info:
            await client.generate("prompt", make_need(), options)

        assert exc_info.value.last_error is last
        assert exc_info.value.attempts == 3
        assert exc_info.value.__cause__ is last
        assert len(adapter.calls) == 3
        # No wait after the final attempt
        assert recording_sleep.delays == [2, 4]

    @pytest.mark.asyncio
    async def test_max_retries_option(self, fake_adapter, recording_sleep, make_need, tmp_path):
        adapter = fake_adapter([ValueError("nope")])
        client = GenerationClient(adapter, sleep=recording_sleep)
        options = GenerationOptions(output_dir=str(tmp_path), max_retries=1)

        with pytest.raises(GenerationError):
            await client.generate("prompt", make_need(), options)

        assert len(adapter.calls) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_is_not_retried(self, fake_adapter, make_need, options):
        token = CancellationToken()

        async def cancelling_sleep(seconds, token=None):
            token.cancel()
            token.raise_if_cancelled()

        adapter = fake_adapter([APIError("Too Many Requests", status_code=429)])
        client = GenerationClient(adapter, sleep=cancelling_sleep)

        with pytest.raises(GenerationCancelled):
            await client.generate("prompt", make_need(), options, token)

        assert len(adapter.calls) == 1

    @pytest.mark.asyncio
    async def test_cancelled_token_stops_before_calling(self, fake_adapter, recording_sleep, make_need, options):
        token = CancellationToken()
        token.cancel()
        adapter = fake_adapter([b"image"])
        client = GenerationClient(adapter, sleep=recording_sleep)

        with pytest.raises(GenerationCancelled):
            await client.generate("prompt", make_need(), options, token)

        assert adapter.calls == []


class TestRequestText:
    """
    Tests for the clauses appended to the composed prompt.
    """

    def test_high_quality_and_aspect_ratio_clauses(self, fake_adapter, make_need, options):
        client = GenerationClient(fake_adapter([b"x"]), quality_mode="high")

        text = client.build_request_text("PROMPT", make_need(width=1200, height=400, aspect_ratio="3:1"), options)

        assert text.startswith("PROMPT")
        assert QUALITY_MODE_CLAUSE in text
        assert "MUST maintain exact 3:1 aspect ratio (1200:400). Do not crop or distort." in text
        assert CHARACTER_CONSISTENCY_CLAUSE not in text
        assert "IMAGE BLENDING" not in text

    def test_standard_quality_omits_quality_clause(self, fake_adapter, make_need, options):
        client = GenerationClient(fake_adapter([b"x"]), quality_mode="standard")

        assert QUALITY_MODE_CLAUSE not in client.build_request_text("PROMPT", make_need(), options)

    def test_character_consistency_and_blending_clauses(self, fake_adapter, make_need, tmp_path):
        client = GenerationClient(fake_adapter([b"x"]))
        options = GenerationOptions(output_dir=str(tmp_path), enable_character_consistency=True)

        text = client.build_request_text("PROMPT", make_need(), options, reference_count=2)

        assert CHARACTER_CONSISTENCY_CLAUSE in text
        assert "blend visual elements from the 2 reference image(s)" in text

    @pytest.mark.asyncio
    async def test_blend_images_are_attached_and_unreadable_skipped(
        self, fake_adapter, recording_sleep, make_need, noise_png, tmp_path
    ):
        reference = tmp_path / "ref.jpg"
        reference.write_bytes(noise_png(image_format="JPEG", mode="RGB"))
        options = GenerationOptions(
            output_dir=str(tmp_path),
            blend_images=(str(reference), str(tmp_path / "missing.png")),
        )
        adapter = fake_adapter([b"image"])
        client = GenerationClient(adapter, sleep=recording_sleep)

        await client.generate("PROMPT", make_need(), options)

        prompt, references = adapter.calls[0]
        assert len(references) == 1
        assert references[0].mime_type == "image/jpeg"
        assert "from the 1 reference image(s)" in prompt
