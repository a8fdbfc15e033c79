from rich.pretty import pprint

from arbor import *

app = Command("main.py", "demo command tree", version="0.1.0")
app.option("-d, --debug", "show parsed input", global_=True)
app.command("help", HelpCommand(global_=True))

copy = app.command("copy cp <source:string> [...targets:string]", "copy a file")
copy.option("-f, --force", "overwrite existing targets")


@copy.action
def callback(options, source, targets=()):
    if options.get("debug"):
        pprint((options, source, targets))


if __name__ == '__main__':
    app.parse()
