"""
Shared fixtures for the GenAss test suite.
"""

import io

import numpy as np
import pytest
from PIL import Image

import genass.core.config as config_module
from genass.generation.adapters.base import ImageGenerationAdapter
from genass.generation.models import AssetNeed, Dimensions, GenerationOptions, GeneratedImage


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


def noise_image_bytes(width=24, height=24, mode="RGBA", image_format="PNG", seed=0):
    """
    Encode a mid-tone noise image.

    Values are uniform in [60, 190], so the image has healthy variation and
    no pure black or white pixels.
    """
    rng = np.random.RandomState(seed)
    channels = 4 if mode == "RGBA" else 3
    pixels = rng.randint(60, 191, size=(height, width, channels)).astype(np.uint8)
    if mode == "RGBA":
        pixels[..., 3] = 255

    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format=image_format)
    return buffer.getvalue()


def solid_image_bytes(width=24, height=24, color=(255, 255, 255, 255), image_format="PNG"):
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format=image_format)
    return buffer.getvalue()


class FakeAdapter(ImageGenerationAdapter):
    """
    Adapter that replays scripted responses.

    Each response is image bytes or an exception to raise. The last response
    repeats once the script runs out.
    """

    model = "test/fake-image-model"

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def generate_image(self, prompt, reference_images=None):
        self.calls.append((prompt, list(reference_images or [])))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return GeneratedImage(data=response)

    def get_service_info(self):
        return {"name": "Fake", "model": self.model}


class RecordingSleep:
    """
    Stand-in for cancellable_sleep that records delays instead of waiting.
    """

    def __init__(self, on_sleep=None):
        self.delays = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds, token=None):
        self.delays.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.delays))
        if token is not None:
            token.raise_if_cancelled()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Keep tests away from the user's ~/.genass directory and environment.
    """
    monkeypatch.setattr(config_module, "USER_CONFIG_PATH", str(tmp_path / "user_config.json"))
    monkeypatch.setattr(config_module, "_config_cache", {})
    config_module.set_config_value("costs.file", str(tmp_path / "costs.json"), save=False)

    for var in ("IMAGE_GENERATION_MODEL", "IMAGE_GENERATION_QUALITY", "IMAGE_COST_PER_GENERATION"):
        monkeypatch.delenv(var, raising=False)

    yield


@pytest.fixture
def make_need():
    def _make_need(type="icon", description="Settings gear", width=24, height=24, aspect_ratio="1:1", **kwargs):
        return AssetNeed(
            type=type,
            description=description,
            dimensions=Dimensions(width=width, height=height, aspect_ratio=aspect_ratio),
            **kwargs
        )
    return _make_need


@pytest.fixture
def options(tmp_path):
    return GenerationOptions(output_dir=str(tmp_path / "assets"))


@pytest.fixture
def noise_png():
    return noise_image_bytes


@pytest.fixture
def solid_png():
    return solid_image_bytes


@pytest.fixture
def fake_adapter():
    return FakeAdapter


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
