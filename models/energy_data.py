from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, Index, UniqueConstraint
from sqlalchemy.sql import func
from models.base import Base


# Upstream source fields, in the order the market API reports them
GENERATION_SOURCE_FIELDS = (
    "natural_gas",
    "dammed_hydro",
    "lignite",
    "river",
    "import_coal",
    "wind",
    "sun",
    "fuel_oil",
    "geothermal",
    "asphaltite_coal",
    "black_coal",
    "biomass",
    "naphta",
    "lng",
    "import_export",
    "waste_heat",
)

RENEWABLE_FIELDS = ("wind", "sun", "dammed_hydro", "river", "geothermal")


class GenerationColumnsMixin:
    """Columns shared by the main generation table and its staging twin"""

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Natural key
    date = Column(String(32), nullable=False)
    hour = Column(String(5), nullable=False)

    # Caller-supplied total; not derived from the source columns
    total = Column(Float, nullable=False, default=0)

    natural_gas = Column(Float, default=0)
    dammed_hydro = Column(Float, default=0)
    lignite = Column(Float, default=0)
    river = Column(Float, default=0)
    import_coal = Column(Float, default=0)
    wind = Column(Float, default=0)
    sun = Column(Float, default=0)
    fuel_oil = Column(Float, default=0)
    geothermal = Column(Float, default=0)
    asphaltite_coal = Column(Float, default=0)
    black_coal = Column(Float, default=0)
    biomass = Column(Float, default=0)
    naphta = Column(Float, default=0)
    lng = Column(Float, default=0)
    import_export = Column(Float, default=0)
    waste_heat = Column(Float, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())


class EnergyData(GenerationColumnsMixin, Base):
    """
    Hourly electricity generation by source.

    One row per (date, hour); rows are overwritten by upserts, never deleted.
    """
    __tablename__ = "energy_data"

    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    __table_args__ = (
        UniqueConstraint("date", "hour", name="uq_energy_data_date_hour"),
        Index("idx_energy_data_date", "date"),
    )


class EnergyDataStaging(GenerationColumnsMixin, Base):
    """
    Landing table for historical generation backfills.

    Carries data-quality flags; rows flagged valid can be promoted into
    energy_data.
    """
    __tablename__ = "energy_data_staging"

    is_valid = Column(Boolean, nullable=False, default=True)
    is_interpolated = Column(Boolean, nullable=False, default=False)
    is_outlier = Column(Boolean, nullable=False, default=False)
    validation_errors = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("date", "hour", name="uq_energy_data_staging_date_hour"),
        Index("idx_energy_data_staging_date", "date"),
    )
