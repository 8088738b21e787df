"""Engine services: settings and telemetry."""
