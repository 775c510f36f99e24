from fiberplant.models.customer import Customer  # noqa: F401
from fiberplant.models.plant import (  # noqa: F401
    CableType,
    FiberCable,
    GisLabel,
    NetworkPoint,
    NetworkPointType,
    PlantStatus,
)
