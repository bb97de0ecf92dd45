from questscript.main import main

main()
