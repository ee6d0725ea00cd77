from branch_pruner.cli import app

app(prog_name="branch-pruner")
