"""Site table entry schema."""

from pydantic import BaseModel, Field, field_validator


class SiteEntry(BaseModel):
    """
    One row of the site table.

    File: sites.json (list form) or sites.csv
    Purpose: Map the site key used in facility spreadsheets ("house") to the
    identifier of the site's association tree in the remote store.
    """

    name: str = Field(description="Site key as written in the input records (e.g. 'DCH')")
    site_id: str = Field(description="Identifier of the site in the remote store")

    @field_validator('name', 'site_id')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('must not be blank')
        return value
