from raindrop_wizard.main import cli

cli()
