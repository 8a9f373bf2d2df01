"""Configuration bundle served to authorized clients."""

from accessgate.core.config import BundleSettings, settings
from accessgate.schemas.access import ConfigBundleResponse


def load_config_bundle(config: BundleSettings | None = None) -> ConfigBundleResponse:
    """Build the bundle from settings. Its contents are opaque to the access core."""
    config = config or settings.bundle
    return ConfigBundleResponse(
        default_addons=list(config.default_addons),
        default_streaming_server_url=config.streaming_server_url,
    )
