from goskel.cli import main

main()
