from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_PATTERN = r"^\d{1,2}:\d{2}$"


class Coordinates(BaseModel):
    lat: float
    lng: float


# =============================================================================
# City resolution
# =============================================================================


class CanonicalCity(BaseModel):
    key: str = Field(..., description="Stable, language-independent city identifier")
    display_name: str
    original: str = Field("", description="Input the caller asked to resolve")
    coordinates: Coordinates | None = None
    confidence: Literal["high", "medium", "low"]


# =============================================================================
# Traveler location
# =============================================================================


class TravelerLocation(BaseModel):
    kind: Literal["home", "airport", "city", "transit"]
    city_key: str = Field("", description="Canonical city key, empty while in transit")
    description: str = ""
    observed_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def check_city_key(self) -> "TravelerLocation":
        if self.kind == "transit" and self.city_key:
            raise ValueError("city_key must be empty while in transit")
        if self.kind != "transit" and not self.city_key:
            raise ValueError(f"city_key is required for a '{self.kind}' location")
        return self


class FlightLeg(BaseModel):
    status: Literal["boarding", "in_flight", "landed"]
    origin_city: str = ""
    destination_city: str
    arrival_time: str | None = None


class ActivityLocation(BaseModel):
    city: str
    name: str


class LocationValidationResult(BaseModel):
    valid: bool
    reason: str = ""


# =============================================================================
# Scheduling
# =============================================================================


class ScheduleWindow(BaseModel):
    opens: str = Field(..., pattern=TIME_PATTERN, description="Opening time, HH:MM")
    closes: str = Field(
        ...,
        pattern=TIME_PATTERN,
        description="Closing time, HH:MM (earlier than opens = next day)",
    )

    @field_validator("opens", "closes")
    @classmethod
    def check_clock_time(cls, value: str) -> str:
        hour, minute = (int(part) for part in value.split(":"))
        if minute > 59 or hour > 24 or (hour == 24 and minute != 0):
            raise ValueError(f"Invalid time '{value}'")
        return value


MealType = Literal["breakfast", "lunch", "dinner"]

ActivityType = Literal[
    "beach", "nature", "culture", "gastronomy", "nightlife", "shopping", "adventure", "wellness"
]


# =============================================================================
# Attractions
# =============================================================================


class Attraction(BaseModel):
    id: str = Field(..., description="Provider-qualified id, e.g. 'osm-Q90'")
    name: str
    type: ActivityType = "culture"
    description: str = ""
    duration_minutes: int = 60
    estimated_cost: float = 0
    coordinates: Coordinates
    rating: float | None = None
    is_must_see: bool = False
    booking_required: bool = False
    booking_url: str | None = None
    opening_hours: ScheduleWindow = Field(
        default_factory=lambda: ScheduleWindow(opens="09:00", closes="18:00")
    )
    popularity_score: int = 0
    image_url: str | None = None
    google_maps_url: str | None = None
    provider_name: str = ""


class AttractionCacheEntry(BaseModel):
    key: str
    destination: str = ""
    fetched_at: datetime
    attractions: list[Attraction] = Field(default_factory=list)


# =============================================================================
# Reservation links
# =============================================================================


class RestaurantForLink(BaseModel):
    type: Literal["restaurant"] = "restaurant"
    name: str
    address: str = ""
    place_id: str | None = None


class HotelForLink(BaseModel):
    type: Literal["hotel"] = "hotel"
    name: str
    city: str = ""
    place_id: str | None = None


class FlightForLink(BaseModel):
    type: Literal["flight"] = "flight"
    origin: str
    destination: str


class AttractionForLink(BaseModel):
    type: Literal["attraction"] = "attraction"
    name: str
    address: str = ""
    website: str | None = None
    place_id: str | None = None


ReservableElement = Annotated[
    RestaurantForLink | HotelForLink | FlightForLink | AttractionForLink,
    Field(discriminator="type"),
]


DateLike = date | datetime | str | None


class ReservationContext(BaseModel):
    check_in: DateLike = None
    check_out: DateLike = None
    date: DateLike = None
    return_date: DateLike = None
    passengers: int | None = Field(None, ge=1, le=9)


# =============================================================================
# API request / response bodies
# =============================================================================


class MealTimeRequest(BaseModel):
    """Either an explicit window, or provider weekday text plus the day to plan."""

    meal: MealType
    window: ScheduleWindow | None = None
    weekday_text: list[str] | None = None
    day: str | None = None

    @model_validator(mode="after")
    def check_window_source(self):
        if self.window is None and not (self.weekday_text and self.day):
            raise ValueError("window or weekday_text with day is required")
        return self


class OpeningHoursRequest(BaseModel):
    weekday_text: list[str]


class MealTimeResponse(BaseModel):
    hour: int
    time: str
    guaranteed: bool = Field(
        ..., description="False when the venue has no full hour open inside 08:00-22:00"
    )


class ReservationLinkRequest(BaseModel):
    element: ReservableElement
    context: ReservationContext = Field(default_factory=ReservationContext)


class TripEvent(BaseModel):
    action: Literal["airport", "board", "land", "activity"]
    name: str = ""
    city: str = ""
    origin_city: str = ""
    destination_city: str = ""
    arrival_time: str | None = None

    @field_validator("name", "city", "origin_city", "destination_city")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def check_required_fields(self) -> "TripEvent":
        if self.action in ("board", "land") and not self.destination_city:
            raise ValueError(f"destination_city is required for a '{self.action}' event")
        if self.action == "activity" and not self.city:
            raise ValueError("city is required for an 'activity' event")
        return self


class TripValidationRequest(BaseModel):
    origin_city: str
    description: str = ""
    events: list[TripEvent] = Field(default_factory=list)

    @field_validator("origin_city")
    @classmethod
    def check_origin_city(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("origin_city must not be blank")
        return value


class ActivityCheck(BaseModel):
    name: str
    city: str
    valid: bool
    reason: str = ""
    location: TravelerLocation


class TripValidationResponse(BaseModel):
    valid: bool
    activities: list[ActivityCheck]
    final_location: TravelerLocation
