from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gstcore.database import get_db


# One request, one transaction
DB = Annotated[AsyncSession, Depends(get_db)]
