from mdeploy.cli.app import main

main()
