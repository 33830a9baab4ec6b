"""
Health check page for Streamlit application.

Add ``?format=json`` for a machine-readable report, ``?endpoint=readiness``
or ``?endpoint=liveness`` for probes.
"""

from memoire.health import main

main()
