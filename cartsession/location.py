"""Current delivery location."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

SELECTED_LOCATION_LABEL = "Selected Location"


class Location(BaseModel):
    """Delivery location; ``id`` is set when it is a saved address."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    label: str = SELECTED_LOCATION_LABEL
    latitude: float
    longitude: float
    delivery_address: str = Field(default="", alias="deliveryAddress")
    id: Optional[str] = Field(default=None, alias="_id")
    details: Optional[str] = None

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    def unsaved(self) -> "Location":
        """Same point as an ad-hoc location, detached from the saved address."""
        return Location(
            label=SELECTED_LOCATION_LABEL,
            latitude=self.latitude,
            longitude=self.longitude,
            delivery_address=self.delivery_address,
        )


class LocationProvider:
    """Holds the location orders are delivered to."""

    def __init__(self, location: Optional[Location] = None):
        self.location = location

    def get_location(self) -> Optional[Location]:
        return self.location

    def set_location(self, location: Optional[Location]) -> None:
        self.location = location
