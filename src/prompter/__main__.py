from prompter.cli import main

main()
