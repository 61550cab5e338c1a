from sqlalchemy import BigInteger, Column, Integer, String, Text
from signage_api.db import Base


class DeviceConfigRow(Base):
    __tablename__ = "device_config"
    device_id = Column(String, primary_key=True)
    web_url = Column(Text, nullable=False, default="")
    video_url = Column(Text, nullable=False, default="")
    layout = Column(String(16), nullable=False, default="split")
    orientation = Column(String(16), nullable=False, default="row")
    split_ratio = Column(Integer, nullable=False, default=50)
    gap_px = Column(Integer, nullable=False, default=0)
    padding_px = Column(Integer, nullable=False, default=0)
    updated_at = Column(BigInteger, nullable=False, default=0)  # epoch seconds
