from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

class Seller(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Business Info
    name: str
    email: str = Field(index=True)
    contact_number: str
    business_address: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
