from gobuilder.main import main

main()
