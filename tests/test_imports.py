"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main classes can be imported."""
    from lidov import (Simulation, PhysicalStateBuilder, SpinConfigurator,
                       IntegrationDriver, OrbitalElementsExtractor,
                       TimeSeriesRecorder, OrbitalElements)
    assert Simulation is not None
    assert PhysicalStateBuilder is not None
    assert SpinConfigurator is not None
    assert IntegrationDriver is not None
    assert OrbitalElementsExtractor is not None
    assert TimeSeriesRecorder is not None
    assert OrbitalElements is not None

def test_version_exists():
    """Test that version is defined."""
    import lidov
    assert hasattr(lidov, '__version__')
    assert lidov.__version__ == "0.1.0"

def test_error_hierarchy():
    """Package errors also derive from the matching builtin errors."""
    from lidov import (LidovError, ConfigurationError, IntegrationFailure,
                       OutputError)
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(IntegrationFailure, RuntimeError)
    assert issubclass(OutputError, OSError)
    for cls in (ConfigurationError, IntegrationFailure, OutputError):
        assert issubclass(cls, LidovError)

def test_plotting_imports():
    """Plotting helpers import with plotly available."""
    from lidov.plotting import plot_kozai, planet_obliquity_deg
    assert callable(plot_kozai)
    assert callable(planet_obliquity_deg)

def test_single_year_constant():
    """Time conversions share the YEAR defined in lidov.defaults."""
    from lidov import defaults, driver, recorder
    assert driver.YEAR is defaults.YEAR
    assert recorder.YEAR is defaults.YEAR
    assert driver.DEFAULT_MACRO_STEP == defaults.MACRO_STEP_YEARS * defaults.YEAR
