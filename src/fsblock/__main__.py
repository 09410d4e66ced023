from fsblock.cli import main

main()
