from turbocast.cli import main

main()
