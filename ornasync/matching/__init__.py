"""
ornasync/matching/ -- The codex/guide matching engine.

Submodules:
    settings        Frozen MatchSettings (rename and skip tables).
    checker         Per-field compare/report/fix protocol and list fixers.
    report          KindReport / ReconciliationReport.
    base            EntityMatcher skeleton shared by every kind.
    items, monsters, skills, pets, status_effects
                    One matcher per entity kind.
    driver          ReconciliationDriver running the matchers in order.
"""
