"""Video models offered by the inference backend."""

from __future__ import annotations

from videogen.models import AIModel

MODELS: tuple[AIModel, ...] = (
    AIModel(
        id="replicate/google/veo-3",
        name="Google Veo-3",
        description="Latest Google video generation model with superior quality and cinematic output",
        max_duration=300,
        is_available=True,
        capabilities=("High Quality", "Cinematic Style", "Text-to-Video", "Long Duration", "Professional Grade"),
    ),
    AIModel(
        id="replicate/black-forest-labs/flux-schnell",
        name="Flux Schnell",
        description="Fast video generation with good quality, optimized for quick results",
        max_duration=180,
        is_available=True,
        capabilities=("Fast Generation", "Good Quality", "Efficient Processing", "Text-to-Video", "Quick Results"),
    ),
    AIModel(
        id="custom/video-model-pro",
        name="Video Model Pro",
        description="Professional-grade video generation with advanced controls and customization",
        max_duration=600,
        is_available=True,
        capabilities=("Professional Quality", "Long Duration", "Advanced Controls", "Custom Styling", "High Resolution"),
    ),
    AIModel(
        id="custom/experimental-model",
        name="Experimental Model",
        description="Cutting-edge experimental model with latest features (beta)",
        max_duration=120,
        is_available=False,
        capabilities=("Experimental", "Beta Features", "Innovation Testing", "Limited Access"),
    ),
)


def available_models() -> list[AIModel]:
    return [m for m in MODELS if m.is_available]


def get_model(model_id: str) -> AIModel | None:
    return next((m for m in MODELS if m.id == model_id), None)
