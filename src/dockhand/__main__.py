from dockhand.cli import main

main()
