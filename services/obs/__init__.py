from services.obs.capability import ObsCapability, ObsInputInfo, ObsSceneItemInfo
from services.obs.gateway import CachedInput, ObsGateway, ObsGatewayError

__all__ = [
    "ObsCapability",
    "ObsInputInfo",
    "ObsSceneItemInfo",
    "CachedInput",
    "ObsGateway",
    "ObsGatewayError",
]
