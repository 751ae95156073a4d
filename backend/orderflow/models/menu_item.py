from sqlalchemy import Boolean, Column, Integer, String, Text, UniqueConstraint

from orderflow.db import Base


class MenuItem(Base):
    __tablename__ = "menu_items"
    __table_args__ = (UniqueConstraint("store_id", "name", name="uq_menu_item_store_name"),)

    id = Column(String(64), primary_key=True)
    store_id = Column(String(64), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False, default=0)
    available = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<MenuItem id={self.id} store={self.store_id} name={self.name}>"
