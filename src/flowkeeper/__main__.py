from flowkeeper.cli.main import main

main()
