from emitcheck.cli import main

main()
