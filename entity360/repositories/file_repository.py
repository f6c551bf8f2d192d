from sqlalchemy.ext.asyncio import AsyncSession

from entity360.database.models import File
from entity360.repositories.base_repository import BaseRepository


class FileRepository(BaseRepository[File]):
    """Repository for file metadata records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, File)
