"""
Dependents scout.

This package collects the repositories that depend on a target GitHub
repository, resolves the top contributor of each dependent through the REST
API, and exports the results to CSV.

The work is split between collection (HTML scraping of the dependents page),
resolution (chained API lookups) and export, driven sequentially by
ScoutDriver.
"""
