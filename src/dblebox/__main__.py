from dblebox.cli import main

main()
