"""Quality Gates build step.

Fails, passes or destabilises a build according to the quality gate
status SonarQube reports for the job's project.
"""

__version__ = "1.0.0"
