from study_scheduler.cli.main import run

run()
