# utils/routine_config.py
from dataclasses import dataclass

@dataclass
class RoutineConfig:
    data_dir: str = ".routine_data"
    lead_in_seconds: int = 5
    default_duration: int = 60      # prefilled in the add-exercise form
    history_days: int = 28          # window for the Data tab
