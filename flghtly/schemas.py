"""
Shared request/result models for the eligibility engine.

Field names are snake_case; camelCase aliases are accepted so the web
form payloads can be passed straight through.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DisruptionType = Literal["delay", "cancellation", "denied_boarding", "downgrading"]
NoticePeriod = Literal["> 14 days", "7-14 days", "< 7 days"]
SeatClass = Literal["first", "business", "premium_economy", "economy"]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AlternativeFlight(_Model):
    """Re-routing offered after a cancellation. Differences are in hours, positive = later."""
    offered: bool = False
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_time_difference: Optional[float] = None
    arrival_time_difference: Optional[float] = None


class FlightDetails(_Model):
    flight_number: str = ""
    airline: str = ""
    departure_date: str = ""
    departure_airport: str = ""
    arrival_airport: str = ""
    delay_duration: str = "0"
    delay_reason: Optional[str] = None
    disruption_type: DisruptionType = "delay"

    # cancellation
    notice_given: Optional[NoticePeriod] = None
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[str] = None
    alternative_flight: Optional[AlternativeFlight] = None
    alternative_offered: Optional[bool] = None
    alternative_timing: Optional[str] = None

    # denied boarding
    denied_boarding_type: Optional[Literal["voluntary", "involuntary"]] = None
    denied_boarding_reason: Optional[str] = None
    compensation_offered: Optional[float] = None
    alternative_arrival_delay: Optional[str] = None

    # downgrading
    booked_class: Optional[SeatClass] = None
    actual_class: Optional[SeatClass] = None
    ticket_price: Optional[float] = None

    @field_validator("departure_airport", "arrival_airport", "flight_number", mode="before")
    @classmethod
    def _upper(cls, v):
        return (v or "").strip().upper()

    @field_validator("disruption_type", mode="before")
    @classmethod
    def _disruption_alias(cls, v):
        if v in (None, ""):
            return "delay"
        if v == "downgrade":
            return "downgrading"
        return v

    @field_validator("delay_duration", mode="before")
    @classmethod
    def _delay_text(cls, v):
        if v is None or v == "":
            return "0"
        return str(v)


class EligibilityResult(BaseModel):
    eligible: bool
    amount: str
    confidence: int = Field(ge=0, le=100)
    message: str
    regulation: str
    reason: Optional[str] = None


class ClaimRequest(_Model):
    """A passenger's claim submission."""
    first_name: str
    last_name: str
    email: str
    flight_number: str
    airline: str
    departure_date: str
    departure_airport: str
    arrival_airport: str
    delay_duration: str = "0"
    delay_reason: Optional[str] = None
    disruption_type: DisruptionType = "delay"
    boarding_pass_url: Optional[str] = None
    delay_proof_url: Optional[str] = None
    payment_id: Optional[str] = None
    estimated_compensation: Optional[str] = None

    @field_validator("departure_airport", "arrival_airport", "flight_number", mode="before")
    @classmethod
    def _upper(cls, v):
        return (v or "").strip().upper()
