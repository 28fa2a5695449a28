from sqlalchemy import Column, Integer, Text

from command_api.database import Base


class Command(Base):
    """A stored how-to: what to do, on which platform, with which command line.

    Ids come from the database and are never reused after a delete.
    """
    __tablename__ = "commands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    how_to = Column(Text, nullable=False)
    platform = Column(Text)
    command_line = Column(Text)

    def __repr__(self):
        return f"<Command id={self.id} how_to={self.how_to!r}>"
