from pydantic import BaseModel, Field
from typing import Optional


class CatalogProduct(BaseModel):
    id: Optional[int] = None
    nombre: str
    precio: int = Field(ge=0)
    descripcion: Optional[str] = None
    imagen_url: Optional[str] = Field(default=None, alias="imagenUrl")

    class Config:
        populate_by_name = True
        extra = "ignore"
