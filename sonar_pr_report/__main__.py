from sonar_pr_report.cli import cli

if __name__ == "__main__":
    cli()
