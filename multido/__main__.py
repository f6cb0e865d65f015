from multido.cli import main

main()
