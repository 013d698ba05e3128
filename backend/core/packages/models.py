from pydantic import BaseModel, Field


class Package(BaseModel):
    """Installable catalog entry. Everything but ``downloads`` is fixed after load."""

    id: str
    name: str
    version: str
    size: int = 0  # KB
    dependencies: list[str] = Field(default_factory=list)
    description: str = ""
    author: str = ""
    license: str = ""
    downloads: int = 0
