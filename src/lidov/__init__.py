"""
Lidov: spin-orbit evolution of hierarchical triples

Drives a heyoka Taylor integration of a star, an inner planet and a
distant inclined perturber with spin and equilibrium tides, and records
orbital elements and spin obliquities at fixed macro-steps.
"""

# Configuration
from .config import config, temp_config

# Errors
from .errors import LidovError, ConfigurationError, IntegrationFailure, OutputError

# Core classes
from .orbital_elements import OrbitalElements, OrbitalElements as OE
from .bodies import Body, SyntheticBody, pairwise_center_of_mass
from .engine import Simulation, SpinExtension, Force
from .builder import PhysicalStateBuilder
from .spin import SpinConfigurator, spin_vector, tidal_time_lag
from .extractor import OrbitalElementsExtractor, spin_obliquity
from .recorder import (TimeSeriesRecorder, OutputRecord, SpinObliquity,
                       COLUMNS, load_time_series)
from .driver import IntegrationDriver, StopPolicy, RunSummary, run_scenario

# Parameters and defaults
from .params import (StarParams, OrbitParams, SpinParams, RunParams, Scenario,
                     load_scenario, save_scenario)
from .defaults import hd80860

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from lidov import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    # Errors
    "LidovError",
    "ConfigurationError",
    "IntegrationFailure",
    "OutputError",
    # Classes
    "OrbitalElements",
    "Body",
    "SyntheticBody",
    "Simulation",
    "SpinExtension",
    "Force",
    "PhysicalStateBuilder",
    "SpinConfigurator",
    "OrbitalElementsExtractor",
    "TimeSeriesRecorder",
    "OutputRecord",
    "SpinObliquity",
    "IntegrationDriver",
    "StopPolicy",
    "RunSummary",
    "StarParams",
    "OrbitParams",
    "SpinParams",
    "RunParams",
    "Scenario",
    # Abbreviations
    "OE",
    # Functions
    "pairwise_center_of_mass",
    "spin_vector",
    "tidal_time_lag",
    "spin_obliquity",
    "load_time_series",
    "run_scenario",
    "load_scenario",
    "save_scenario",
    "hd80860",
    # Constants
    "COLUMNS",
]
