from askgpt.main import main

main()
