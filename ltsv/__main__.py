from ltsv.cli import main

main()
