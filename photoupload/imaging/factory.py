from photoupload.config.settings import Settings
from photoupload.imaging.base import BaseImageCodec
from photoupload.imaging.pillow_adapter import PillowAdapter


class ImageCodecFactory:
    """Creates the correct image codec based on settings."""

    ADAPTERS: dict[str, type[BaseImageCodec]] = {
        "pillow": PillowAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseImageCodec:
        engine = settings.image_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown image engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
