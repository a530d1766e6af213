"""Runtime concerns: retry and observability."""
