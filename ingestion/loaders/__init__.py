from ingestion.loaders.energy_store import EnergyStore

__all__ = ["EnergyStore"]
