from typing import Optional

from pydantic import BaseModel


class CompanySettings(BaseModel):
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    company_email: Optional[str] = None
