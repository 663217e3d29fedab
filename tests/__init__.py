"""layerlint test suite.

Test organization:
- test_naming.py / test_definitions.py: name patterns, layer classification, definition parsing
- test_registry.py / test_config_loader.py: registry loading, YAML discovery, structural errors
- test_rules.py: per-model convention rules and parallel validation
- test_graph.py: layer edges, cycles, orphans, unresolved references
- test_report.py / test_linter.py / test_cli.py: reports, the lint pipeline and exit codes
"""
