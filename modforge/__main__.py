from modforge.pipeline import main

main()
