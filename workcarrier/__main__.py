from workcarrier.main import main

main()
