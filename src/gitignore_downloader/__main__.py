from gitignore_downloader.cli import app

app(prog_name="gitignore-downloader")
