"""
archillesdc.templates - Jinja2 Template Files
=============================================

Jinja2 templates for every file a generated project contains. Templates use
the ``.j2`` extension and are rendered by ``archillesdc.units`` (new
projects) and ``archillesdc.scaffold`` (``generate`` commands).

Layout
------
    base/        package-level config files, README, env files
    prisma/      schema, seed script, client singleton
    env/         runtime environment schema
    auth/        NextAuth config, route, middleware, guards, forms
    trpc/        tRPC setup, client helpers, routers
    app/         App Router pages and layouts
    components/  UI component groups
    utils/       utilities, hooks, shared types, favicon
    styles/      global stylesheet
    partials/    per-provider auth macros
    scaffold/    ``generate`` command outputs

Template Context
----------------
Project templates receive:

    options : ProjectOptions
        Frozen run options

    db, auth, template, pm
        Variant records from ``archillesdc.variants``

    groups : dict[str, bool]
        Which component groups are generated, keyed by group id

    generator_version : str
        Version of archillesdc for attribution

Generated sources are TypeScript and JSX: a literal ``{{`` must be written
as ``{ {`` so Jinja does not read it as an expression.
"""

# Templates are loaded by Jinja2's PackageLoader.
