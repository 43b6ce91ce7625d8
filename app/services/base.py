import logging
from sqlalchemy.orm import Session


class BaseService:
    """Common plumbing for class-based services: a session and a named logger."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)