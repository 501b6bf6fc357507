"""Catalog records: storage locations and the items kept in them."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, model_validator


class Location(BaseModel):
    """A place where items are stored. ``id == 0`` means not yet assigned."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    id: int = 0
    name: str


class Item(BaseModel):
    """An inventory item.

    ``image_refs`` is ordered; the first reference is the primary thumbnail.
    On the wire the fields are camelCase (``locationId``, ``imageRefs``,
    ``sortOrder``). Image lists written by the mobile app under ``imageUris``,
    or as a single ``imageUri`` string, are accepted on read.
    """

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    id: int = 0
    name: str
    description: Optional[str] = None
    quantity: int = Field(default=1, ge=0)
    location_id: int = Field(alias='locationId')
    image_refs: List[str] = Field(
        default_factory=list,
        alias='imageRefs',
        validation_alias=AliasChoices('imageRefs', 'imageUris', 'image_refs'),
    )
    sort_order: int = Field(default=0, alias='sortOrder')

    @model_validator(mode='before')
    @classmethod
    def lift_single_image_uri(cls, data: Any) -> Any:
        """Turn a legacy ``imageUri`` string into a one-element image list."""
        if not isinstance(data, dict):
            return data
        has_list = any(key in data for key in ('imageRefs', 'imageUris', 'image_refs'))
        if not has_list and data.get('imageUri'):
            data = dict(data)
            data['imageRefs'] = [data.pop('imageUri')]
        return data
