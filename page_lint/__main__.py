from page_lint.cli import cli

cli()
