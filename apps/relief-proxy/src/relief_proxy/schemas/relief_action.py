from pydantic import BaseModel, ConfigDict, Field


class ReliefAction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    donation_id: int = Field(alias="DonationID")
    donor_name: str | None = Field(default="", alias="DonorName")
    donor_type: str | None = Field(default="", alias="DonorType")
    contact_number: str | None = Field(default="", alias="ContactNumber")
    email: str | None = Field(default="", alias="Email")
    address: str | None = Field(default="", alias="Address")
    location_lat: str | None = Field(default=None, alias="LocationLat")
    location_long: str | None = Field(default=None, alias="LocationLong")
    donated_items: list[str] | None = Field(default_factory=list, alias="DonatedItems")
    status: str | None = Field(default="", alias="Status")
    is_verified: bool | None = Field(default=False, alias="IsVerified")
    verified_by: str | None = Field(default=None, alias="VerifiedBy")
    verified_at: str | None = Field(default=None, alias="VerifiedAt")
    created_at: str | None = Field(default=None, alias="CreatedAt")
    updated_at: str | None = Field(default=None, alias="UpdatedAt")

    def raw_location(self) -> tuple[str | None, str | None]:
        return self.location_lat, self.location_long
